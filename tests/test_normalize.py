from anime_opener.models.provider import JobState
from anime_opener.services import normalize


class TestFirstMatch:
    def test_rules_are_tried_in_order(self):
        payload = {"image": {"image_url": "b"}, "data": {"image_urls": ["a"]}}
        assert normalize.first_match(payload, normalize.IMAGE_URL_RULES) == "a"
        assert normalize.first_match(payload, normalize.IMAGE_STATUS_URL_RULES) == "b"

    def test_empty_and_structured_values_are_skipped(self):
        payload = {"data": {"audio": ""}, "audio_file": {"nested": True}, "url": "https://x/y.mp3"}
        assert normalize.first_match(payload, normalize.MUSIC_URL_RULES) == "https://x/y.mp3"

    def test_index_out_of_range(self):
        assert normalize.first_match({"data": {"image_urls": []}}, normalize.IMAGE_URL_RULES) is None

    def test_numeric_ids_become_strings(self):
        assert normalize.video_job({"task_id": 106916112212032}).task_id == "106916112212032"


class TestShapes:
    def test_music_url_variants(self):
        """Every documented music response shape yields the URL."""
        shapes = [
            {"data": {"audio": "u1"}},
            {"audio_file": "u2"},
            {"audio": {"file_url": "u3"}},
            {"file_url": "u4"},
            {"url": "u5"},
        ]
        assert [normalize.music_result(s).music_url for s in shapes] == ["u1", "u2", "u3", "u4", "u5"]

    def test_music_without_url(self):
        assert normalize.music_result({"base_resp": {"status_code": 0}}).music_url is None

    def test_video_task_id_nested(self):
        assert normalize.video_job({"task": {"task_id": "t-9"}}).task_id == "t-9"

    def test_image_job_keeps_task_id_and_inline_url(self):
        job = normalize.image_job({"id": "img-1", "data": {"image_urls": ["https://i"]}})
        assert job.task_id == "img-1"
        assert job.image_url == "https://i"

    def test_upload_variants(self):
        assert normalize.uploaded_file({"file": {"file_url": "a"}}).file_url == "a"
        assert normalize.uploaded_file({"files": [{"file_url": "b"}]}).file_url == "b"
        assert normalize.uploaded_file({"url": "c"}).file_url == "c"

    def test_video_status_with_file_id_only(self):
        status = normalize.video_status({"status": "Success", "file_id": "f-1"})
        assert status.state is JobState.SUCCESS
        assert status.video_url is None
        assert status.file_id == "f-1"


class TestParseState:
    def test_case_insensitive(self):
        assert normalize.parse_state({"status": "Success"}) is JobState.SUCCESS
        assert normalize.parse_state({"status": "success"}) is JobState.SUCCESS
        assert normalize.parse_state({"status": "Fail"}) is JobState.FAILED
        assert normalize.parse_state({"status": "failed"}) is JobState.FAILED

    def test_anything_else_is_processing(self):
        for raw in ({"status": "Queueing"}, {"status": "Preparing"}, {}, {"status": None}):
            assert normalize.parse_state(raw) is JobState.PROCESSING
