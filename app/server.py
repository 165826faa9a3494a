"""
Process entry point: ``python -m app.server``.

Production serves HTTPS with the configured key and certificate; every
other environment serves plain HTTP.
"""
import uvicorn

from app.config import Settings, settings


def uvicorn_options(cfg: Settings = settings) -> dict:
    """Build the ``uvicorn.run`` keyword arguments for *cfg*."""
    options = {
        "host": cfg.HOST,
        "port": cfg.PORT,
        "log_level": cfg.LOG_LEVEL.lower(),
    }
    if cfg.APP_ENV == "production":
        if not cfg.TLS_KEY_FILE or not cfg.TLS_CERT_FILE:
            raise RuntimeError("TLS_KEY_FILE and TLS_CERT_FILE must be set in production")
        options["ssl_keyfile"] = cfg.TLS_KEY_FILE
        options["ssl_certfile"] = cfg.TLS_CERT_FILE
    return options


def run() -> None:
    uvicorn.run("app.main:app", **uvicorn_options())


if __name__ == "__main__":
    run()
