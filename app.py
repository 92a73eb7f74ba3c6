import hmac
import logging

import pytz
from flask import Flask, request, jsonify
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from config import Settings
from errors import WhitelistError
from report import build_report
from roblox_utils import IdentityVerifier
from serializer import MutationSerializer
from storage import DocumentStore
from whitelist import WhitelistRegistrar

ERROR_STATUS = {
    "validation": 400,
    "not_found": 404,
    "mismatch": 404,
    "rate_limited": 429,
    "upstream_unavailable": 503,
    "timeout": 504,
    "store_timeout": 504,
    "upstream_error": 502,
    "store_error": 502,
}


def build_registrar(settings: Settings) -> WhitelistRegistrar:
    verifier = IdentityVerifier(url=settings.roblox_users_url, timeout=settings.request_timeout)
    store = DocumentStore(
        base_url=settings.pastefy_base_url,
        api_key=settings.pastefy_api_key,
        paste_id=settings.pastefy_paste_id,
        timeout=settings.request_timeout,
        title=settings.whitelist_title,
        visibility=settings.whitelist_visibility,
    )
    return WhitelistRegistrar(verifier, store, MutationSerializer())


def verify_token(header: str, token: str) -> bool:
    expected = f"Bearer {token}"
    return hmac.compare_digest(expected.encode("utf-8"), (header or "").encode("utf-8"))


def create_app(settings: Settings, registrar: WhitelistRegistrar = None) -> Flask:
    app = Flask(__name__)
    app.logger.setLevel(logging.INFO)
    app.config["SETTINGS"] = settings
    registrar = registrar or build_registrar(settings)
    app.extensions["whitelist_registrar"] = registrar

    @app.errorhandler(WhitelistError)
    def whitelist_error(e):
        app.logger.warning(f"{e.kind}: {e.message}")
        return jsonify(e.to_dict()), ERROR_STATUS.get(e.kind, 500)

    @app.post("/whitelist")
    def register():
        if settings.api_token and not verify_token(request.headers.get("Authorization", ""), settings.api_token):
            app.logger.warning("Rejected registration with bad token")
            return jsonify({"ok": False, "error": "unauthorized", "message": "invalid token"}), 401

        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            body = {}
        result = registrar.register(body.get("username"))
        app.logger.info(f"Registered {result.canonical_name} (new={result.is_new}, total={result.total_count})")
        return jsonify({"ok": True, **result.to_dict()}), (201 if result.is_new else 200)

    @app.get("/whitelist")
    def stats():
        return jsonify({"ok": True, **registrar.get_stats().to_dict()})

    @app.get("/whitelist/<username>")
    def membership(username):
        snapshot = registrar.get_stats()
        registered = registrar.check_membership(username)
        return jsonify({"ok": True, "username": username, "registered": registered, "count": snapshot.count})

    @app.get("/healthz")
    def healthz():
        return "ok", 200

    return app


def scheduled_report(registrar, tag, tzname, logger=None):
    logger = logger or logging.getLogger(__name__)
    try:
        stats = registrar.get_stats()
        logger.info(build_report(stats, tag=tag, tzname=tzname))
    except WhitelistError as e:
        logger.exception(f"Scheduled report failed: {e}")


def start_scheduler(settings: Settings, registrar, logger=None) -> BackgroundScheduler:
    tz = pytz.timezone(settings.timezone)
    scheduler = BackgroundScheduler(timezone=tz)
    for hour, minute in settings.report_times:
        tag = f"{hour:02d}:{minute:02d}"
        scheduler.add_job(
            scheduled_report,
            CronTrigger(hour=hour, minute=minute, timezone=tz),
            kwargs={"registrar": registrar, "tag": tag, "tzname": settings.timezone, "logger": logger},
        )
    scheduler.start()
    return scheduler


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    settings = Settings.from_env()
    app = create_app(settings)
    start_scheduler(settings, app.extensions["whitelist_registrar"], logger=app.logger)
    app.logger.info(f"Connected to Pastefy paste: {settings.pastefy_paste_id}")
    app.run(host="0.0.0.0", port=settings.port)
