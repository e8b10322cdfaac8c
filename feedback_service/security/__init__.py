from .cors import check_ingestion_origin, init_cors
from .headers import init_security

__all__ = ["check_ingestion_origin", "init_cors", "init_security"]
