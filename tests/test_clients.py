"""
Unit Tests — HTTP Clients
=========================
Nightfall and GitHub clients against httpx.MockTransport.
"""
import asyncio
import json

import httpx
import pytest

from diffscan.clients.github_client import GithubClient
from diffscan.clients.nightfall_client import NightfallClient, build_scan_request, parse_finding
from diffscan.core.errors import AnnotationPostError, RemoteScanError
from diffscan.models.comment import CheckRunOutput, CheckRunUpdate
from diffscan.models.finding import Confidence

POLICY = {"CREDIT_CARD_NUMBER": Confidence.POSSIBLE, "API_KEY": Confidence.LIKELY}


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ==========================================
# Nightfall
# ==========================================

class TestNightfallClient:

    def test_request_body(self):
        body = build_scan_request(POLICY, ["a", "b"])
        assert body["payload"] == ["a", "b"]
        rule = body["policy"]["detectionRules"][0]
        assert rule["logicalOp"] == "ANY"
        assert rule["detectors"][0] == {
            "detectorType": "NIGHTFALL_DETECTOR",
            "nightfallDetector": "CREDIT_CARD_NUMBER",
            "displayName": "CREDIT_CARD_NUMBER",
            "minConfidence": "POSSIBLE",
            "minNumFindings": 1,
        }
        assert rule["detectors"][1]["minConfidence"] == "LIKELY"

    def test_configured_display_name_sent(self):
        body = build_scan_request(POLICY, ["a"], {"API_KEY": "Stripe key"})
        names = [d["displayName"] for d in body["policy"]["detectionRules"][0]["detectors"]]
        assert names == ["CREDIT_CARD_NUMBER", "Stripe key"]

    def test_display_name_maps_back_to_detector(self):
        def handler(request):
            return httpx.Response(200, json={"findings": [[
                {"finding": "sk_live_0123456789", "detector": {"name": "Stripe key"}, "confidence": "LIKELY"},
            ]]})

        async def run_test():
            client = NightfallClient("k", POLICY, {"API_KEY": "Stripe key"}, client=_client(handler))
            return await client.submit(["key sk_live_0123456789"])

        finding = asyncio.run(run_test())[0][0]
        assert finding.detector == "API_KEY"
        assert finding.display_name == "Stripe key"

    def test_parse_finding(self):
        finding = parse_finding({
            "finding": "4242-4242-4242-4242",
            "detector": {"name": "CREDIT_CARD_NUMBER", "uuid": "x"},
            "confidence": "VERY_LIKELY",
            "location": {"byteRange": {"start": 0, "end": 19}},
        })
        assert finding.detector == "CREDIT_CARD_NUMBER"
        assert finding.confidence is Confidence.VERY_LIKELY
        assert finding.byte_range == (0, 19)

    def test_submit(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"findings": [
                [{"finding": "4242-4242-4242-4242", "detector": {"name": "CREDIT_CARD_NUMBER"},
                  "confidence": "LIKELY"}],
                [],
            ]})

        async def run_test():
            async with NightfallClient("nf-key", POLICY, url="https://scan.test/v3/scan",
                                       client=_client(handler)) as client:
                return await client.submit(["card 4242-4242-4242-4242", "nothing here"])

        result = asyncio.run(run_test())
        assert seen["auth"] == "Bearer nf-key"
        assert seen["body"]["payload"] == ["card 4242-4242-4242-4242", "nothing here"]
        assert len(result) == 2
        assert result[0][0].fragment == "4242-4242-4242-4242"
        assert result[1] == []

    def test_null_item_findings(self):
        handler = lambda request: httpx.Response(200, json={"findings": [None]})

        async def run_test():
            return await NightfallClient("k", POLICY, client=_client(handler)).submit(["x"])

        assert asyncio.run(run_test()) == [[]]

    @pytest.mark.parametrize("response", [
        httpx.Response(401, json={"message": "unauthorized"}),
        httpx.Response(429, text="slow down"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json={"findings": [[{"confidence": "SOMETIMES"}]]}),
    ])
    def test_failures_are_remote_errors(self, response):
        async def run_test():
            return await NightfallClient("k", POLICY, client=_client(lambda r: response)).submit(["x"])

        with pytest.raises(RemoteScanError):
            asyncio.run(run_test())

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def run_test():
            return await NightfallClient("k", POLICY, client=_client(handler)).submit(["x"])

        with pytest.raises(RemoteScanError):
            asyncio.run(run_test())


# ==========================================
# GitHub
# ==========================================

class TestGithubClient:

    def test_create_check_run(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 4242})

        async def run_test():
            github = GithubClient("gh-token", base_url="https://gh.test/", client=_client(handler))
            return await github.create_check_run("acme", "shop", "abc123", "Nightfall DLP")

        assert asyncio.run(run_test()) == 4242
        assert seen["method"] == "POST"
        assert seen["url"] == "https://gh.test/repos/acme/shop/check-runs"
        assert seen["auth"] == "token gh-token"
        assert seen["body"] == {"name": "Nightfall DLP", "head_sha": "abc123", "status": "in_progress"}

    def test_update_check_run(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={})

        update = CheckRunUpdate(
            name="Nightfall DLP",
            output=CheckRunOutput(title="Nightfall DLP", summary="found 0"),
        )

        async def run_test():
            github = GithubClient("t", base_url="https://gh.test", client=_client(handler))
            await github.update_check_run("acme", "shop", 9, update)

        asyncio.run(run_test())
        assert seen["method"] == "PATCH"
        assert seen["path"] == "/repos/acme/shop/check-runs/9"
        assert seen["body"] == {"name": "Nightfall DLP", "output": {"title": "Nightfall DLP", "summary": "found 0"}}

    def test_create_review_comment(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": 1})

        async def run_test():
            github = GithubClient("t", base_url="https://gh.test", client=_client(handler))
            await github.create_review_comment("acme", "shop", 12, "abc", "a.py", 3, "masked")

        asyncio.run(run_test())
        assert seen["path"] == "/repos/acme/shop/pulls/12/comments"
        assert seen["body"] == {"commit_id": "abc", "path": "a.py", "line": 3, "side": "RIGHT", "body": "masked"}

    @pytest.mark.parametrize("response", [
        httpx.Response(422, json={"message": "Validation Failed"}),
        httpx.Response(201, json={"name": "no id"}),
    ])
    def test_failures_are_post_errors(self, response):
        async def run_test():
            github = GithubClient("t", base_url="https://gh.test", client=_client(lambda r: response))
            await github.create_check_run("acme", "shop", "abc", "Nightfall DLP")

        with pytest.raises(AnnotationPostError):
            asyncio.run(run_test())
