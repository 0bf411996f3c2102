from flask import Blueprint

from api.rate_limit import limiter, PUBLIC_READ

API_VERSION = "1.0.0"

bp = Blueprint("health", __name__)


@bp.get("/health")
@limiter.limit(PUBLIC_READ)
def health():
    """
    Health check
    ---
    tags:
      - Health
    responses:
      200:
        description: API is up
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            version:
              type: string
              example: 1.0.0
    """
    return {"status": "ok", "version": API_VERSION}, 200
