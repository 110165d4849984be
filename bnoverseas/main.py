import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from bnoverseas.core import config
from bnoverseas.core.errors import register_exception_handlers
from bnoverseas.core.logging_config import configure_logging
from bnoverseas.database import Base, engine, ensure_user_schema
from bnoverseas.middleware.edge_auth import EdgeAuthMiddleware
from bnoverseas.routes import admin_routes, auth_routes, profile_routes, verification_routes

configure_logging()

app = FastAPI(title='BN Overseas API')

app.add_middleware(EdgeAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

register_exception_handlers(app)

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'BN Overseas API Running'}


app.include_router(auth_routes.router, prefix='/auth')
app.include_router(verification_routes.router, prefix='/auth')
app.include_router(profile_routes.router, prefix='/auth')
app.include_router(admin_routes.router, prefix='/api/admin')
