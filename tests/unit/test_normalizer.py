"""Unit tests for metadata normalization and text helpers."""

from __future__ import annotations

from vidgate.models.normalizer import (
    first_line,
    normalize_format,
    normalize_metadata,
    normalize_whitespace,
    sanitize_filename,
)
from vidgate.models.schemas import VideoMetadata


# ---------------------------------------------------------------------------
# normalize_format
# ---------------------------------------------------------------------------


class TestNormalizeFormat:
    def test_quality_prefers_format_note(self):
        fmt = normalize_format({"format_id": "22", "format_note": "720p60", "height": 720})
        assert fmt.quality == "720p60"

    def test_quality_falls_back_to_height(self):
        fmt = normalize_format({"format_id": "18", "height": 360})
        assert fmt.quality == "360p"

    def test_quality_none_without_note_or_height(self):
        assert normalize_format({"format_id": "x"}).quality is None

    def test_codec_none_means_absent(self):
        fmt = normalize_format({"format_id": "137", "acodec": "none", "vcodec": "avc1"})
        assert fmt.has_audio is False
        assert fmt.has_video is True

    def test_missing_codecs_mean_absent(self):
        fmt = normalize_format({"format_id": "x"})
        assert fmt.has_audio is False
        assert fmt.has_video is False

    def test_filesize_exact_then_approx_then_zero(self):
        assert normalize_format({"format_id": "a", "filesize": 10, "filesize_approx": 20}).filesize == 10
        assert normalize_format({"format_id": "a", "filesize": None, "filesize_approx": 20}).filesize == 20
        assert normalize_format({"format_id": "a"}).filesize == 0

    def test_itag_is_string(self):
        assert normalize_format({"format_id": 140}).itag == "140"

    def test_serialized_aliases(self):
        dumped = normalize_format({"format_id": "18", "acodec": "mp4a", "vcodec": "avc1"}).model_dump(
            by_alias=True
        )
        assert dumped["hasAudio"] is True
        assert dumped["hasVideo"] is True


# ---------------------------------------------------------------------------
# normalize_metadata
# ---------------------------------------------------------------------------


class TestNormalizeMetadata:
    def test_full_document(self, sample_info):
        meta = normalize_metadata(sample_info)

        assert isinstance(meta, VideoMetadata)
        assert meta.title == "Sample Video"
        assert meta.duration == "3:32"
        assert meta.channel == "Sample Channel"
        assert meta.views == 12345
        assert meta.thumbnail == "https://i.ytimg.com/vi/abc/hq.jpg"

    def test_video_formats_sorted_first_stably(self, sample_info):
        meta = normalize_metadata(sample_info)
        assert [f.itag for f in meta.formats] == ["18", "137", "140"]

    def test_duration_falls_back_to_seconds(self):
        meta = normalize_metadata({"duration": 61.5})
        assert meta.duration == 61.5

    def test_formats_without_id_skipped(self):
        meta = normalize_metadata({"formats": [{"ext": "mp4"}, {"format_id": "18"}, "junk"]})
        assert [f.itag for f in meta.formats] == ["18"]

    def test_missing_fields_are_none(self):
        meta = normalize_metadata({})
        assert meta.title is None
        assert meta.views is None
        assert meta.formats == []

    def test_non_integer_views_dropped(self):
        assert normalize_metadata({"view_count": "many"}).views is None


# ---------------------------------------------------------------------------
# Text helpers
# ---------------------------------------------------------------------------


class TestTextHelpers:
    def test_normalize_whitespace(self):
        assert normalize_whitespace("  a \n\t b  ") == "a b"

    def test_first_line(self):
        assert first_line("\n  https://media/1 \nhttps://media/2\n") == "https://media/1"
        assert first_line("") == ""

    def test_sanitize_filename_strips_unsafe_characters(self):
        assert sanitize_filename('My: "Video" / Part 1?', "mp4") == "My Video Part 1.mp4"

    def test_sanitize_filename_default_stem(self):
        assert sanitize_filename(None, "mkv") == "video.mkv"
        assert sanitize_filename("???", "mkv") == "video.mkv"

    def test_sanitize_filename_truncates(self):
        name = sanitize_filename("x" * 300, "mp4")
        assert name == "x" * 100 + ".mp4"

    def test_sanitize_filename_cleans_extension(self):
        assert sanitize_filename("clip", "../mp4") == "clip.mp4"
        assert sanitize_filename("clip", "") == "clip.bin"

    def test_sanitize_filename_keeps_unicode(self):
        assert sanitize_filename("Café ☕", "m4a") == "Café ☕.m4a"
