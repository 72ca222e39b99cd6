from fastapi import APIRouter, Response
from sqlalchemy import text
from starlette import status

router = APIRouter()


@router.get('')
def status_get() -> dict[str, str]:
    """
    Fast check to ensure API is running.
    Load balancers and deploy scripts poll this, keep the body stable.
    """
    return {'status': 'ok'}


@router.get('/database')
def database_health_check(response: Response) -> dict[str, str]:
    """
    Fast check to ensure database connectivity.
    """
    from garden.network.database.session import db

    try:
        db.session.execute(text('SELECT 1'))
    except Exception as e:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {'status': 'unavailable', 'detail': str(e)}

    return {'status': 'ok'}
