import asyncio

import httpx
import pytest

from anime_opener.api.routes import create_app
from anime_opener.client.progress import MERGE, MUSIC, UPLOAD, VIDEO, ProgressTracker, StepStatus
from anime_opener.client.session import (
    AnimeOpenerClient,
    ApiError,
    CancelToken,
    GenerationFailedError,
    PollingCancelledError,
    PollingTimeoutError,
)
from anime_opener.client.validation import SubmissionError, validate_submission

THEME = "Epic battle scene with dramatic orchestra"


@pytest.fixture
def image_file(tmp_path, jpeg_bytes):
    path = tmp_path / "hero.jpg"
    path.write_bytes(jpeg_bytes)
    return path


@pytest.fixture
def tracker() -> ProgressTracker:
    return ProgressTracker()


@pytest.fixture
def opener(orchestrator, tracker, tmp_path) -> AnimeOpenerClient:
    """Client wired straight into the ASGI app; the app talks to the fake MiniMax."""
    app = create_app(orchestrator=orchestrator, upload_dir=tmp_path / "uploads")
    return AnimeOpenerClient(
        base_url="http://testserver",
        tracker=tracker,
        poll_interval=0,
        max_attempts=5,
        transport=httpx.ASGITransport(app=app),
    )


def _statuses(tracker: ProgressTracker) -> list[StepStatus]:
    return [s.status for s in tracker.steps]


class TestValidation:
    def test_missing_fields(self, image_file):
        with pytest.raises(SubmissionError, match="upload an image and enter a theme"):
            validate_submission(None, THEME)
        with pytest.raises(SubmissionError, match="upload an image and enter a theme"):
            validate_submission(image_file, "  ")

    def test_not_an_image(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(SubmissionError, match="image file"):
            validate_submission(path, THEME)

    def test_oversize_file(self, tmp_path):
        path = tmp_path / "huge.png"
        with open(path, "wb") as f:
            f.truncate(10 * 1024 * 1024 + 1)
        with pytest.raises(SubmissionError, match="less than 10MB"):
            validate_submission(path, THEME)

    @pytest.mark.asyncio
    async def test_rejected_before_any_request(self, opener, fake_minimax, tracker, tmp_path):
        with pytest.raises(SubmissionError):
            await opener.create_opening(tmp_path / "missing.png", THEME)
        assert fake_minimax.requests == []
        assert all(s is StepStatus.PENDING for s in _statuses(tracker))


class TestCreateOpening:
    @pytest.mark.asyncio
    async def test_full_run(self, opener, fake_minimax, tracker, image_file):
        """Submission, two status polls and a finished video."""
        fake_minimax.reply(
            "GET", "/query/video_generation",
            (200, {"status": "Processing"}),
            (200, {"status": "Success", "video_url": "https://cdn.test/final.mp4"}),
        )
        seen = []
        tracker.on_change = lambda step: seen.append((step.id, step.status))

        result = await opener.create_opening(image_file, THEME)

        assert result.status == "success"
        assert result.task_id == "vid-task-1"
        assert result.video_url == "https://cdn.test/final.mp4"
        assert result.music_url == "https://cdn.test/song.mp3"
        assert result.lyrics == "[Verse]\nSteel meets steel"
        assert _statuses(tracker) == [StepStatus.COMPLETED] * 4
        assert tracker.completed_fraction == 1.0
        assert seen[0] == (UPLOAD, StepStatus.PROCESSING)
        assert seen[-1] == (MERGE, StepStatus.COMPLETED)
        assert len(fake_minimax.calls("GET", "/query/video_generation")) == 2

    @pytest.mark.asyncio
    async def test_completed_response_skips_polling(self, opener, fake_minimax, tracker, image_file):
        fake_minimax.reply("POST", "/image_generation", (200, {"base_resp": {"status_code": 0}}))

        result = await opener.create_opening(image_file, THEME)

        assert result.status == "completed"
        assert result.video_url is None
        assert fake_minimax.calls("GET", "/query/video_generation") == []
        assert tracker.step(MUSIC).status is StepStatus.COMPLETED
        assert tracker.step(VIDEO).status is StepStatus.PENDING
        assert tracker.step(MERGE).status is StepStatus.PENDING

    @pytest.mark.asyncio
    async def test_failed_video_marks_step_three(self, opener, fake_minimax, tracker, image_file):
        fake_minimax.reply("GET", "/query/video_generation", (200, {"status": "Fail"}))

        with pytest.raises(GenerationFailedError, match="Video generation failed"):
            await opener.create_opening(image_file, THEME)

        assert tracker.step(VIDEO).status is StepStatus.ERROR
        assert tracker.step(MERGE).status is StepStatus.PENDING
        assert tracker.error == "Video generation failed"

    @pytest.mark.asyncio
    async def test_server_error_marks_step_one(self, opener, fake_minimax, tracker, image_file):
        fake_minimax.reply(
            "POST", "/music_generation",
            (200, {"base_resp": {"status_code": 1008, "status_msg": "insufficient balance"}}),
        )

        with pytest.raises(ApiError, match="insufficient balance") as exc_info:
            await opener.create_opening(image_file, THEME)

        assert exc_info.value.status_code == 500
        assert tracker.step(UPLOAD).status is StepStatus.ERROR
        assert tracker.error == "insufficient balance"

    @pytest.mark.asyncio
    async def test_polling_gives_up(self, opener, fake_minimax, tracker, image_file):
        with pytest.raises(PollingTimeoutError):
            await opener.create_opening(image_file, THEME)

        assert len(fake_minimax.calls("GET", "/query/video_generation")) == 5
        assert tracker.step(VIDEO).status is StepStatus.ERROR

    @pytest.mark.asyncio
    async def test_cancelled_before_first_poll(self, opener, fake_minimax, tracker, image_file):
        cancel = CancelToken()
        cancel.cancel()

        with pytest.raises(PollingCancelledError):
            await opener.create_opening(image_file, THEME, cancel)

        assert fake_minimax.calls("GET", "/query/video_generation") == []
        assert tracker.step(VIDEO).status is StepStatus.ERROR


class TestCancelToken:
    @pytest.mark.asyncio
    async def test_wait_times_out(self):
        assert await CancelToken().wait(0.01) is False

    @pytest.mark.asyncio
    async def test_cancel_wakes_waiter(self):
        token = CancelToken()
        waiter = asyncio.create_task(token.wait(30))
        await asyncio.sleep(0)
        token.cancel()
        assert await asyncio.wait_for(waiter, 1) is True


class TestClientConstruction:
    def test_attempts_derived_from_max_wait(self):
        client = AnimeOpenerClient(poll_interval=3, max_wait=900)
        assert client.max_attempts == 300

    def test_zero_interval_needs_attempts(self):
        with pytest.raises(ValueError):
            AnimeOpenerClient(poll_interval=0)


class TestDownload:
    @pytest.mark.asyncio
    async def test_streams_to_disk(self, tmp_path):
        def handler(request):
            assert str(request.url) == "https://cdn.test/final.mp4"
            return httpx.Response(200, content=b"\x00\x00\x00\x18ftypmp42")

        client = AnimeOpenerClient(transport=httpx.MockTransport(handler))
        dest = await client.download_video("https://cdn.test/final.mp4", tmp_path / "out" / "op.mp4")

        assert dest.read_bytes() == b"\x00\x00\x00\x18ftypmp42"

    @pytest.mark.asyncio
    async def test_http_error(self, tmp_path):
        client = AnimeOpenerClient(transport=httpx.MockTransport(lambda r: httpx.Response(404)))
        with pytest.raises(httpx.HTTPStatusError):
            await client.download_video("https://cdn.test/gone.mp4", tmp_path / "op.mp4")
