from fastapi import Request, status
from fastapi.responses import JSONResponse
import logging

from genie.core.exceptions import EstimationConfigError

logger = logging.getLogger(__name__)


async def exception_handler(request: Request, call_next):
    """Global exception handler"""
    try:
        response = await call_next(request)
        return response
    except EstimationConfigError as e:
        # configuration faults are blocking and always reported as such
        logger.error(f"Estimation configuration error: {str(e)}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Estimation configuration error",
                "detail": str(e)
            }
        )
    except Exception as e:
        logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "detail": str(e) if request.app.state.ENVIRONMENT == "development" else "An error occurred"
            }
        )
