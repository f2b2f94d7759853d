"""
Minimal backend HTTP server for log search.

Exposes the search, entry and permalink endpoints the frontend needs without
introducing a web framework.
"""

from __future__ import annotations

import argparse
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, Optional
from urllib.parse import parse_qs, quote, unquote, urlsplit

from dotenv import load_dotenv
from elasticsearch import ApiError, NotFoundError, TransportError
from pydantic import ValidationError

from logsearch.core import LogSearchError, config, create_client, error_status, setup_logging
from logsearch.data.schema import SearchRequest
from logsearch.logtypes import LOG_TYPES, by_locator_param, get_log_type
from logsearch.search import get_entry, resolve_locator, search_logs

load_dotenv()

logger = logging.getLogger("backend")

CLIENT = None


def _client():
    global CLIENT
    if CLIENT is None:
        CLIENT = create_client()
    return CLIENT


def entry_path(type_name: str, suffix: str, doc_id: str) -> str:
    return f"/logs/{type_name}/entry/{quote(suffix, safe='')}/{quote(doc_id, safe='')}"


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "LogSearch/1.0"

    def _send_json(self, status: int, payload: object) -> None:
        body = json.dumps(payload, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_redirect(self, location: str) -> None:
        self.send_response(302)
        self.send_header("Location", location)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _read_json(self) -> Optional[Dict[str, object]]:
        length = int(self.headers.get("Content-Length", "0"))
        if length <= 0:
            return None
        data = self.rfile.read(length)
        try:
            return json.loads(data.decode("utf-8"))
        except json.JSONDecodeError:
            return None

    def _send_error(self, exc: LogSearchError) -> None:
        self._send_json(400, {"detail": str(exc), "code": exc.code})

    def _send_backend_error(self, exc: Exception) -> None:
        status = error_status(exc)
        logger.error("Backend request failed (status %s): %s", status, exc)
        if status is None or status < 500:
            status = 502
        self._send_json(status, {"detail": str(exc), "code": "transport"})

    def do_GET(self) -> None:
        url = urlsplit(self.path)
        parts = [unquote(part) for part in url.path.strip("/").split("/")] if url.path.strip("/") else []

        try:
            if url.path == "/health":
                self._send_json(200, {"status": "ok"})
                return

            if not parts and url.query:
                self._handle_locator(url.query)
                return

            if url.path == "/logs":
                self._send_json(200, {"logTypes": [log_type.describe() for log_type in LOG_TYPES.values()]})
                return

            if len(parts) == 3 and parts[0] == "logs" and parts[2] == "columns":
                log_type = get_log_type(parts[1])
                self._send_json(200, {"columns": log_type.columns.describe()})
                return

            if len(parts) == 5 and parts[0] == "logs" and parts[2] == "entry":
                log_type = get_log_type(parts[1])
                try:
                    entry = get_entry(_client(), log_type, parts[3], parts[4])
                except NotFoundError:
                    self._send_json(404, {"detail": "Entry not found"})
                    return
                self._send_json(200, entry)
                return
        except LogSearchError as exc:
            self._send_error(exc)
            return
        except (ApiError, TransportError) as exc:
            self._send_backend_error(exc)
            return

        self._send_json(404, {"detail": "Not found"})

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
        self.end_headers()

    def do_POST(self) -> None:
        parts = urlsplit(self.path).path.strip("/").split("/")
        if len(parts) == 3 and parts[0] == "logs" and parts[2] == "search":
            self._handle_search(parts[1])
            return

        self._send_json(404, {"detail": "Not found"})

    def _handle_search(self, type_name: str) -> None:
        payload = self._read_json()
        if payload is None:
            payload = {}
        try:
            log_type = get_log_type(type_name)
            request = SearchRequest.model_validate(payload)
            result = search_logs(_client(), log_type, request)
        except ValidationError as exc:
            self._send_json(400, {"detail": exc.errors(include_url=False), "code": "validation"})
            return
        except LogSearchError as exc:
            self._send_error(exc)
            return
        except (ApiError, TransportError) as exc:
            self._send_backend_error(exc)
            return
        self._send_json(200, result)

    def _handle_locator(self, query: str) -> None:
        params = {key: values[0] for key, values in parse_qs(query).items() if values}
        log_type = by_locator_param(params)
        if log_type is None:
            self._send_json(404, {"detail": "No permalink parameter"})
            return

        # parse_qs decodes '+' as a space; locators never contain spaces
        locator = params[log_type.locator_param].replace(" ", "+")
        matches = resolve_locator(_client(), log_type, locator)
        if not matches:
            self._send_json(404, {"detail": "Entry not found"})
            return
        if len(matches) > 1:
            self._send_json(
                409,
                {
                    "detail": "Permalink matches several entries",
                    "entries": [
                        entry_path(log_type.name, log_type.index_suffix(match.index), match.id)
                        for match in matches
                    ],
                },
            )
            return

        match = matches[0]
        self._send_redirect(entry_path(log_type.name, log_type.index_suffix(match.index), match.id))

    def log_message(self, format: str, *args) -> None:
        logger.info("%s - %s", self.address_string(), format % args)


def run(host: str, port: int) -> None:
    setup_logging("backend", config.log_level)
    setup_logging("logsearch", config.log_level)
    logger.info("Starting backend server on %s:%s", host, port)
    logger.info("Elasticsearch hosts: %s", ", ".join(config.elasticsearch.hosts))
    server = ThreadingHTTPServer((host, port), BackendHandler)
    server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Log search backend server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    run(args.host, args.port)


if __name__ == "__main__":
    main()
