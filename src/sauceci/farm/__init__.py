from .api_client import FarmClient, FarmError
from .models import StatusEntry, StatusResponse, SubmitResponse, SuiteResult

__all__ = ["FarmClient", "FarmError", "StatusEntry", "StatusResponse", "SubmitResponse", "SuiteResult"]
