"""HTTP server entrypoints for invoice generation."""

from __future__ import annotations

import errno
import json
import logging
import os
import shutil
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlsplit

from .artifacts import invoice_artifact
from .config import LISTEN_BACKLOG, MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG, OUTPUT_DIR
from .fonts import FontSet, load_font_set
from .models import InvoiceData, InvoicePayloadError, decode_invoice

logger = logging.getLogger(__name__)

API_PATH = "/api/generate-invoice"
HEALTH_PATHS = ("/health", "/healthz")

CORS_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type"),
)

DISCONNECT_ERRNOS = {errno.EPIPE, errno.ECONNRESET, errno.ETIMEDOUT}

InvoiceWriter = Callable[[InvoiceData, FontSet, str], None]


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


def load_invoice_writer() -> InvoiceWriter:
    try:
        from .rendering import write_invoice
    except ModuleNotFoundError as exc:
        if exc.name == "fpdf":
            raise DependencyError(
                "Missing dependency 'fpdf2'. Install the project with 'pip install -e .'."
            ) from exc
        raise
    return write_invoice


def decode_request(body: bytes) -> Tuple[Optional[InvoiceData], Optional[str]]:
    try:
        return decode_invoice(body), None
    except InvoicePayloadError as exc:
        return None, str(exc)


class InvoiceHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG

    server: "InvoiceHTTPServer"

    def end_headers(self) -> None:
        for name, value in CORS_HEADERS:
            self.send_header(name, value)
        super().end_headers()

    def _route(self) -> str:
        return urlsplit(self.path).path

    def _write_response(
        self,
        status: int,
        content_type: Optional[str],
        body: bytes,
        extra_headers: Tuple[Tuple[str, str], ...] = (),
    ) -> bool:
        try:
            self.send_response(status)
            if content_type:
                self.send_header("Content-Type", content_type)
            for name, value in extra_headers:
                self.send_header(name, value)
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            if body:
                self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_text(self, status: int, message: str) -> bool:
        body = (message + "\n").encode("utf-8")
        return self._write_response(status, "text/plain; charset=utf-8", body)

    def _send_json(self, status: int, payload: Dict[str, Any]) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _send_pdf(self, path: str) -> bool:
        with open(path, "rb") as pdf_file:
            size = os.fstat(pdf_file.fileno()).st_size
            self._response_started = True
            try:
                self.send_response(200)
                self.send_header("Content-Type", "application/pdf")
                self.send_header("Content-Disposition", "attachment; filename=invoice.pdf")
                self.send_header("Content-Length", str(size))
                self.end_headers()
                shutil.copyfileobj(pdf_file, self.wfile)
                return True
            except Exception as exc:
                if is_client_disconnect(exc):
                    return False
                raise

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            return b""

        try:
            content_length = int(header)
        except ValueError:
            self._send_text(400, "Content-Length must be an integer.")
            return None

        if content_length <= 0:
            return b""

        if content_length > self.MAX_BODY_BYTES:
            self._send_text(413, f"Body exceeds {self.MAX_BODY_BYTES} bytes.")
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _generate(self, invoice: InvoiceData) -> None:
        self._response_started = False
        try:
            with invoice_artifact(self.server.output_dir) as path:
                self.server.write_invoice(invoice, self.server.fonts, path)
                if self._send_pdf(path):
                    logger.info("Invoice #%d generated", invoice.invoice_number)
        except Exception:
            if self._response_started:
                raise
            logger.exception("Failed to generate invoice #%d", invoice.invoice_number)
            self._send_text(500, "Failed to generate invoice.")

    def do_POST(self) -> None:
        if self._route() != API_PATH:
            self._send_text(404, "404 page not found")
            return

        body = self._read_body()
        if body is None:
            return

        invoice, error = decode_request(body)
        if invoice is None:
            self._send_text(400, error or "Invalid invoice payload.")
            return

        self._generate(invoice)

    def do_OPTIONS(self) -> None:
        if self._route() != API_PATH:
            self._send_text(404, "404 page not found")
            return
        self._write_response(200, None, b"")

    def do_GET(self) -> None:
        route = self._route()
        if route in HEALTH_PATHS:
            self._send_json(200, {"status": "ok"})
            return
        if route == API_PATH:
            self._write_response(405, None, b"", extra_headers=(("Allow", "POST, OPTIONS"),))
            return
        self._send_text(404, "404 page not found")

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG

    def __init__(
        self,
        server_address: Tuple[str, int],
        fonts: FontSet,
        output_dir: str = OUTPUT_DIR,
        write_invoice: Optional[InvoiceWriter] = None,
        handler_class: type = InvoiceHandler,
    ) -> None:
        self.fonts = fonts
        self.output_dir = output_dir
        self.write_invoice = write_invoice or load_invoice_writer()
        super().__init__(server_address, handler_class)


def run(host: str = "0.0.0.0", port: int = 3000, output_dir: str = OUTPUT_DIR) -> None:
    write_invoice = load_invoice_writer()
    fonts = load_font_set()
    os.makedirs(output_dir, exist_ok=True)
    server = InvoiceHTTPServer((host, port), fonts, output_dir, write_invoice)
    logger.info("Invoice API server listening on http://%s:%d", host, port)
    logger.info("Fonts: %s, %s", fonts.regular_path, fonts.bold_path)
    try:
        server.serve_forever()
    finally:
        server.server_close()
