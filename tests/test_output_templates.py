"""Tests for output templates and unique output paths."""

from pathlib import Path

import pytest

from conftest import make_video
from destream.config.output_templates import (
    assign_output_paths,
    render_template,
    template_placeholders,
    validate_template,
)
from destream.exceptions import InputError


class TestValidateTemplate:
    """Tests for template validation."""

    def test_default_template_is_valid(self):
        template = "{title} - {publishDate} {uniqueId}"
        assert validate_template(template) == template
        assert template_placeholders(template) == ["title", "publishDate", "uniqueId"]

    def test_unknown_element(self):
        with pytest.raises(InputError) as exc_info:
            validate_template("{title} {resolution}")
        assert "resolution" in exc_info.value.message

    def test_empty_template(self):
        with pytest.raises(InputError):
            validate_template("  ")


class TestRenderTemplate:
    """Tests for template rendering."""

    def test_fields_are_substituted(self, tmp_path):
        video = make_video(tmp_path, author="Jane Roe", unique_id="33445555")
        assert render_template("{author} - {title} {uniqueId}", video) == "Jane Roe - Lecture 1 33445555"

    def test_result_is_filename_safe(self, tmp_path):
        video = make_video(tmp_path, title="Q&A: part 1/2?")
        assert render_template("{title}", video) == "Q&A_ part 1_2_"


class TestAssignOutputPaths:
    """Tests for batch path assignment."""

    def test_paths_follow_template(self, tmp_path):
        videos = [make_video(tmp_path, 1, out_path=""), make_video(tmp_path, 2, out_path="")]
        result = assign_output_paths(videos, [tmp_path, tmp_path], "{title}", "mkv")
        assert [v.out_path for v in result] == [
            str(tmp_path / "Lecture 1.mkv"),
            str(tmp_path / "Lecture 2.mkv"),
        ]
        assert videos[0].out_path == ""

    def test_duplicates_in_batch_are_renamed(self, tmp_path):
        videos = [make_video(tmp_path, i, title="Same") for i in (1, 2, 3)]
        result = assign_output_paths(videos, [tmp_path] * 3, "{title}", "mp4")
        names = [Path(v.out_path).name for v in result]
        assert names == ["Same.mp4", "Same (1).mp4", "Same (2).mp4"]

    def test_existing_file_is_avoided(self, tmp_path):
        (tmp_path / "Lecture 1.mkv").write_bytes(b"old")
        result = assign_output_paths([make_video(tmp_path, 1)], [tmp_path], "{title}")
        assert Path(result[0].out_path).name == "Lecture 1 (1).mkv"

    def test_existing_file_kept_with_skip(self, tmp_path):
        (tmp_path / "Lecture 1.mkv").write_bytes(b"old")
        result = assign_output_paths([make_video(tmp_path, 1)], [tmp_path], "{title}", skip=True)
        assert Path(result[0].out_path).name == "Lecture 1.mkv"

    def test_per_video_directories(self, tmp_path):
        a, b = tmp_path / "a", tmp_path / "b"
        videos = [make_video(tmp_path, 1, title="X"), make_video(tmp_path, 2, title="X")]
        result = assign_output_paths(videos, [a, b], "{title}")
        assert result[0].out_path == str(a / "X.mkv")
        assert result[1].out_path == str(b / "X.mkv")

    def test_length_mismatch(self, tmp_path):
        with pytest.raises(InputError):
            assign_output_paths([make_video(tmp_path)], [], "{title}")
