"""HTTP service (FastAPI) exposing the bridge operations and the aligner."""
