import errno
import http.client
import json
import os
import shutil
import tempfile
import threading
import time
import unittest
from importlib import util as importlib_util
from typing import Dict, List, Optional, Tuple

from invoice_api.fonts import FontSet, load_font_set
from invoice_api.models import InvoiceData
from invoice_api.server import API_PATH, InvoiceHTTPServer, decode_request

FPDF_AVAILABLE = importlib_util.find_spec("fpdf") is not None

EXAMPLE_BODY = json.dumps(
    {
        "InvoiceNumber": 1,
        "Rows": [{"Name": "Widget", "Quantity": 2, "Rate": 5.00, "Amount": 10.00}],
        "SubTotal": 10,
        "Total": 10,
    }
).encode("utf-8")

FAKE_PDF = b"%PDF-1.4\nfake invoice\n%%EOF\n"

Response = Tuple[int, Dict[str, str], bytes]


def fake_writer(invoice: InvoiceData, fonts: FontSet, path: str) -> None:
    with open(path, "wb") as fh:
        fh.write(FAKE_PDF)


def failing_writer(invoice: InvoiceData, fonts: FontSet, path: str) -> None:
    with open(path, "wb") as fh:
        fh.write(b"%PDF-1.4\npartial")
    raise OSError(errno.ENOSPC, "No space left on device")


class DecodeRequestTests(unittest.TestCase):
    def test_returns_invoice_for_valid_body(self) -> None:
        invoice, error = decode_request(EXAMPLE_BODY)

        self.assertIsNone(error)
        assert invoice is not None
        self.assertEqual(invoice.invoice_number, 1)

    def test_returns_error_text_for_malformed_json(self) -> None:
        invoice, error = decode_request(b'{"InvoiceNumber":')

        self.assertIsNone(invoice)
        assert error is not None
        self.assertIn("Expecting value", error)


class ServerTestCase(unittest.TestCase):
    writer = staticmethod(fake_writer)

    def _fonts(self) -> FontSet:
        return FontSet(regular_path="regular.ttf", bold_path="bold.ttf")

    def setUp(self) -> None:
        self.output_dir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.output_dir, True)
        self.server = InvoiceHTTPServer(
            ("127.0.0.1", 0),
            self._fonts(),
            self.output_dir,
            write_invoice=self.writer,
        )
        self.port = self.server.server_address[1]
        thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        thread.start()
        self.addCleanup(self.server.server_close)
        self.addCleanup(self.server.shutdown)

    def _request(
        self,
        method: str,
        path: str = API_PATH,
        body: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        conn = http.client.HTTPConnection("127.0.0.1", self.port, timeout=60)
        try:
            conn.request(method, path, body=body, headers=headers or {})
            response = conn.getresponse()
            data = response.read()
            return response.status, {k.lower(): v for k, v in response.getheaders()}, data
        finally:
            conn.close()

    def _post(self, body: bytes) -> Response:
        return self._request("POST", body=body, headers={"Content-Type": "application/json"})

    def _artifacts(self) -> List[str]:
        return os.listdir(self.output_dir)

    def _wait_for_no_artifacts(self, timeout: float = 5.0) -> List[str]:
        deadline = time.monotonic() + timeout
        remaining = self._artifacts()
        while remaining and time.monotonic() < deadline:
            time.sleep(0.02)
            remaining = self._artifacts()
        return remaining

    def assertCors(self, headers: Dict[str, str]) -> None:
        self.assertEqual(headers.get("access-control-allow-origin"), "*")
        self.assertEqual(headers.get("access-control-allow-methods"), "GET, POST, OPTIONS")
        self.assertEqual(headers.get("access-control-allow-headers"), "Content-Type")


class GenerateInvoiceEndpointTests(ServerTestCase):
    def test_post_returns_pdf_attachment(self) -> None:
        status, headers, body = self._post(EXAMPLE_BODY)

        self.assertEqual(status, 200)
        self.assertEqual(headers["content-type"], "application/pdf")
        self.assertEqual(headers["content-disposition"], "attachment; filename=invoice.pdf")
        self.assertEqual(headers["content-length"], str(len(FAKE_PDF)))
        self.assertEqual(body, FAKE_PDF)
        self.assertCors(headers)
        self.assertEqual(self._wait_for_no_artifacts(), [])

    def test_malformed_json_returns_400_without_artifact(self) -> None:
        status, headers, body = self._post(b'{"InvoiceNumber":')

        self.assertEqual(status, 400)
        self.assertIn(b"Expecting value", body)
        self.assertTrue(headers["content-type"].startswith("text/plain"))
        self.assertCors(headers)
        self.assertEqual(self._artifacts(), [])

    def test_wrong_field_type_returns_400(self) -> None:
        status, _, body = self._post(b'{"InvoiceNumber": "one"}')

        self.assertEqual(status, 400)
        self.assertIn(b"InvoiceNumber", body)
        self.assertEqual(self._artifacts(), [])

    def test_non_finite_numbers_return_400_without_artifact(self) -> None:
        for body in (
            b'{"SubTotal": NaN}',
            b'{"Total": 1e400}',
            b'{"InvoiceNumber": 99999999999999999999999}',
        ):
            with self.subTest(body=body):
                status, _, response_body = self._post(body)

                self.assertEqual(status, 400)
                self.assertFalse(response_body.startswith(b"%PDF"))
                self.assertEqual(self._artifacts(), [])

    def test_empty_body_returns_400(self) -> None:
        status, _, _ = self._request("POST", body=b"")

        self.assertEqual(status, 400)
        self.assertEqual(self._artifacts(), [])

    def test_oversized_body_returns_413(self) -> None:
        limit = self.server.RequestHandlerClass.MAX_BODY_BYTES

        status, _, body = self._request("POST", headers={"Content-Length": str(limit + 1)})

        self.assertEqual(status, 413)
        self.assertEqual(self._artifacts(), [])

    def test_options_preflight_returns_empty_200(self) -> None:
        status, headers, body = self._request(
            "OPTIONS",
            headers={"Origin": "http://example.com", "Access-Control-Request-Method": "POST"},
        )

        self.assertEqual(status, 200)
        self.assertEqual(body, b"")
        self.assertCors(headers)

    def test_get_on_endpoint_is_not_allowed(self) -> None:
        status, headers, _ = self._request("GET")

        self.assertEqual(status, 405)
        self.assertCors(headers)

    def test_unknown_path_returns_404(self) -> None:
        status, headers, _ = self._request("POST", path="/api/other", body=EXAMPLE_BODY)

        self.assertEqual(status, 404)
        self.assertCors(headers)

    def test_query_string_is_ignored_for_routing(self) -> None:
        status, _, body = self._request("POST", path=f"{API_PATH}?download=1", body=EXAMPLE_BODY)

        self.assertEqual(status, 200)
        self.assertEqual(body, FAKE_PDF)

    def test_health(self) -> None:
        status, headers, body = self._request("GET", path="/health")

        self.assertEqual(status, 200)
        self.assertEqual(json.loads(body), {"status": "ok"})
        self.assertCors(headers)


class RenderFailureTests(ServerTestCase):
    writer = staticmethod(failing_writer)

    def test_write_failure_returns_500_and_removes_partial_file(self) -> None:
        with self.assertLogs("invoice_api.server", level="ERROR"):
            status, headers, body = self._post(EXAMPLE_BODY)

        self.assertEqual(status, 500)
        self.assertFalse(body.startswith(b"%PDF"))
        self.assertCors(headers)
        self.assertEqual(self._wait_for_no_artifacts(), [])


class ArtifactDirectoryFailureTests(ServerTestCase):
    def setUp(self) -> None:
        super().setUp()
        blocker = os.path.join(self.output_dir, "not-a-directory")
        with open(blocker, "wb"):
            pass
        self.server.output_dir = blocker

    def test_unusable_output_directory_returns_500(self) -> None:
        with self.assertLogs("invoice_api.server", level="ERROR"):
            status, _, _ = self._post(EXAMPLE_BODY)

        self.assertEqual(status, 500)
        self.assertEqual(self._artifacts(), ["not-a-directory"])


@unittest.skipUnless(FPDF_AVAILABLE, "fpdf is not installed")
class RenderedInvoiceEndpointTests(ServerTestCase):
    writer = None  # resolved by the server from the fpdf renderer

    def _fonts(self) -> FontSet:
        return load_font_set()

    def test_post_returns_rendered_pdf(self) -> None:
        status, headers, body = self._post(EXAMPLE_BODY)

        self.assertEqual(status, 200)
        self.assertTrue(body.startswith(b"%PDF"))
        self.assertIn(b"%%EOF", body[-32:])
        self.assertEqual(int(headers["content-length"]), len(body))
        self.assertEqual(self._wait_for_no_artifacts(), [])

    def test_concurrent_requests_get_independent_documents(self) -> None:
        bodies = [
            json.dumps({"InvoiceNumber": number, "Note": f"request {number}"}).encode("utf-8")
            for number in (101, 202)
        ]
        results: Dict[int, Response] = {}
        errors: List[BaseException] = []
        start = threading.Barrier(len(bodies))

        def worker(index: int) -> None:
            try:
                start.wait(timeout=10)
                results[index] = self._post(bodies[index])
            except BaseException as exc:  # surfaced below
                errors.append(exc)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(len(bodies))]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        self.assertEqual(errors, [])
        self.assertEqual(sorted(results), [0, 1])
        for status, headers, body in results.values():
            self.assertEqual(status, 200)
            self.assertTrue(body.startswith(b"%PDF"))
            self.assertIn(b"%%EOF", body[-32:])
            self.assertEqual(int(headers["content-length"]), len(body))
        self.assertNotEqual(results[0][2], results[1][2])
        self.assertEqual(self._wait_for_no_artifacts(), [])


if __name__ == "__main__":
    unittest.main()
