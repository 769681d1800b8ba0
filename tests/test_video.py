import json

import httpx
import pytest

from detector_studio.errors import (
    DownloadFailed,
    GenerationTimeout,
    IncompleteGeneration,
    InvalidCredential,
    MissingCredential,
    ModelCallFailed,
)
from detector_studio.prompts import build_video_generation_request
from detector_studio.schemas import MediaPart, VideoGenerationConfig
from detector_studio.video import VideoGenerationJob, video_uri_from_operation, with_key

OPERATION = "models/veo-3.1-fast-generate-preview/operations/op-123"
VIDEO_URI = "https://gemini.test/v1beta/files/abc:download?alt=media"
VIDEO_BYTES = b"\x00\x00\x00\x18ftypmp42 fake video"


def _operation(done: bool, uri: str = VIDEO_URI) -> httpx.Response:
    body = {"name": OPERATION, "done": done}
    if done and uri:
        body["response"] = {"generateVideoResponse": {"generatedSamples": [{"video": {"uri": uri}}]}}
    return httpx.Response(200, json=body)


def _job(settings, transport, sleeps, progress=None):
    async def fake_sleep(seconds):
        sleeps.append(seconds)

    return VideoGenerationJob(
        settings,
        "test-key",
        transport=transport,
        sleep=fake_sleep,
        on_progress=(progress.append if progress is not None else None),
    )


@pytest.mark.asyncio
async def test_polls_until_done_then_downloads(settings, make_transport):
    transport, seen = make_transport(
        httpx.Response(200, json={"name": OPERATION}),
        _operation(False),
        _operation(False),
        _operation(False),
        _operation(True),
        httpx.Response(200, content=VIDEO_BYTES, headers={"Content-Type": "video/mp4"}),
    )
    sleeps, progress = [], []
    job = _job(settings, transport, sleeps, progress)

    video = await job.run(build_video_generation_request("A fox in the snow"))

    polls = [r for r in seen if r.method == "GET" and r.url.path.endswith("/operations/op-123")]
    assert len(polls) == 4
    assert job.poll_count == 4
    assert sleeps == [10.0] * 4
    assert video.content == VIDEO_BYTES
    assert video.mime_type == "video/mp4"
    assert str(seen[-1].url) == VIDEO_URI + "&key=test-key"
    assert progress[0] == "Initializing video generation..."
    assert progress[-1] == "Finalizing video..."


@pytest.mark.asyncio
async def test_submit_payload_carries_config_and_image(settings, make_transport):
    transport, seen = make_transport(_operation(True), httpx.Response(200, content=VIDEO_BYTES))
    request = build_video_generation_request(
        "Zoom out slowly",
        MediaPart(data="aW1hZ2U=", mime_type="image/png"),
        VideoGenerationConfig(resolution="1080p", aspect_ratio="9:16"),
    )

    await _job(settings, transport, []).run(request)

    submit = seen[0]
    assert submit.url.path == "/v1beta/models/veo-3.1-fast-generate-preview:predictLongRunning"
    assert submit.headers["x-goog-api-key"] == "test-key"
    body = json.loads(submit.content)
    assert body["instances"][0] == {
        "prompt": "Zoom out slowly",
        "image": {"bytesBase64Encoded": "aW1hZ2U=", "mimeType": "image/png"},
    }
    assert body["parameters"] == {"sampleCount": 1, "resolution": "1080p", "aspectRatio": "9:16"}


@pytest.mark.asyncio
async def test_missing_credential_fails_before_network(settings, make_transport):
    transport, seen = make_transport()
    job = VideoGenerationJob(settings, "", transport=transport)

    with pytest.raises(MissingCredential):
        await job.run(build_video_generation_request("A fox"))

    assert seen == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"error": {"message": "Requested entity was not found."}}),
        httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}}),
    ],
)
async def test_rejected_key_on_submit(settings, make_transport, response):
    transport, _ = make_transport(response)

    with pytest.raises(InvalidCredential):
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))


@pytest.mark.asyncio
async def test_submit_server_error(settings, make_transport):
    transport, _ = make_transport(httpx.Response(500, text="boom"))

    with pytest.raises(ModelCallFailed):
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))


@pytest.mark.asyncio
async def test_poll_failure_is_fatal(settings, make_transport):
    transport, seen = make_transport(
        httpx.Response(200, json={"name": OPERATION}),
        httpx.Response(503, text="unavailable"),
    )

    with pytest.raises(ModelCallFailed):
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))

    assert len(seen) == 2


@pytest.mark.asyncio
async def test_operation_error_is_model_call_failed(settings, make_transport):
    transport, _ = make_transport(
        httpx.Response(200, json={"name": OPERATION, "done": True, "error": {"code": 3, "message": "unsafe prompt"}}),
    )

    with pytest.raises(ModelCallFailed):
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))


@pytest.mark.asyncio
async def test_done_without_uri_is_incomplete(settings, make_transport):
    transport, _ = make_transport(
        httpx.Response(200, json={"name": OPERATION}),
        _operation(True, uri=""),
    )

    with pytest.raises(IncompleteGeneration):
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))


@pytest.mark.asyncio
async def test_download_failure(settings, make_transport):
    transport, _ = make_transport(_operation(True), httpx.Response(404, text="gone"))

    with pytest.raises(DownloadFailed) as exc:
        await _job(settings, transport, []).run(build_video_generation_request("A fox"))

    assert "404" in exc.value.user_message


@pytest.mark.asyncio
async def test_poll_loop_is_bounded(settings, make_transport):
    replies = [httpx.Response(200, json={"name": OPERATION})] + [_operation(False) for _ in range(5)]
    transport, seen = make_transport(*replies)
    sleeps = []
    job = _job(settings, transport, sleeps)

    with pytest.raises(GenerationTimeout):
        await job.run(build_video_generation_request("A fox"))

    assert job.poll_count == settings.video_max_poll_attempts
    assert len(seen) == 1 + settings.video_max_poll_attempts


def test_with_key_and_uri_extraction():
    assert with_key("https://x.test/file?alt=media", "k") == "https://x.test/file?alt=media&key=k"
    assert with_key("https://x.test/file", "k") == "https://x.test/file?key=k"
    keyed = httpx.URL(with_key("https://x.test/file?alt=media", "a b&c=d"))
    assert keyed.params["key"] == "a b&c=d"
    assert keyed.params["alt"] == "media"
    assert video_uri_from_operation({"done": True}) is None
    assert (
        video_uri_from_operation({"response": {"generatedVideos": [{"video": {"uri": "https://v"}}]}})
        == "https://v"
    )
