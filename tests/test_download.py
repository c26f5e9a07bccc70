"""Tests for the download orchestrator."""

import dataclasses
import logging
import signal
from pathlib import Path

import pytest

from conftest import (
    INTERRUPT,
    BarRecorder,
    FakeFFmpeg,
    failing_script,
    make_video,
    progress_script,
)
from destream.exceptions import ExitCode, MuxingError
from destream.models.task import TaskOutcome
from destream.operations.download import DownloadSettings, download_videos, simulate_videos
from destream.tools.ffmpeg import MuxProgress


def _refresher(session):
    calls = []

    def refresh(video_url):
        calls.append(video_url)
        return dataclasses.replace(session, access_token=f"token-{len(calls)}")

    return refresh, calls


class TestSuccessfulBatch:
    """Videos are downloaded in order."""

    def test_all_videos_succeed(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2)]
        ffmpeg = FakeFFmpeg(progress_script("00:00:10"), progress_script("00:00:20"))
        bars = BarRecorder()

        tasks = download_videos(videos, session, ffmpeg=ffmpeg, progress_factory=bars)

        assert [t.outcome for t in tasks] == [TaskOutcome.SUCCESS, TaskOutcome.SUCCESS]
        assert [t.progress for t in tasks] == [50, 50]
        assert [c.outputs[-1][-1] for c in ffmpeg.commands] == [v.out_path for v in videos]
        assert all(Path(v.out_path).exists() for v in videos)
        assert all(bar.position == 50 for bar in bars.bars)

    def test_progress_is_monotonic_and_bounded(self, tmp_path, session):
        video = make_video(tmp_path, total_chunks=50)
        seen = []

        class RecordingBars(BarRecorder):
            def __call__(self, total):
                bar = super().__call__(total)
                real_update = bar.update

                def update(chunks, **kwargs):
                    seen.append(real_update(chunks, **kwargs))
                    return bar.position

                bar.update = update
                return bar

        script = progress_script("00:00:10", "00:01:30", "-00:00:00.5", "N/A", "00:05:00", "00:09:00")
        settings = DownloadSettings(seconds_per_chunk=6)
        download_videos([video], session, settings, ffmpeg=FakeFFmpeg(script), progress_factory=RecordingBars())

        assert seen[:6] == [1, 15, 15, 15, 50, 50]
        assert seen == sorted(seen)
        assert max(seen) <= 50

    def test_bearer_token_of_session_is_used(self, tmp_path, session):
        ffmpeg = FakeFFmpeg(progress_script())
        download_videos([make_video(tmp_path)], session, ffmpeg=ffmpeg, progress_factory=BarRecorder())
        assert "Authorization: Bearer opaque-token\r\n" in ffmpeg.commands[0].to_args()


class TestFailure:
    """A failing video aborts the batch."""

    def test_failure_aborts_remaining_videos(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2, 3)]
        ffmpeg = FakeFFmpeg(progress_script(), failing_script("00:00:10"), progress_script())
        bars = BarRecorder()

        with pytest.raises(MuxingError) as exc_info:
            download_videos(videos, session, ffmpeg=ffmpeg, progress_factory=bars)

        assert exc_info.value.exit_code == ExitCode.UNK_FFMPEG_ERROR
        assert "403 Forbidden" in exc_info.value.message
        assert len(ffmpeg.commands) == 2
        assert Path(videos[0].out_path).exists()
        assert not Path(videos[1].out_path).exists()
        assert not Path(videos[2].out_path).exists()
        assert bars.bars[1]._stopped

    def test_no_cleanup_keeps_partial_file(self, tmp_path, session):
        video = make_video(tmp_path)
        settings = DownloadSettings(no_cleanup=True)

        with pytest.raises(MuxingError):
            download_videos(
                [video], session, settings,
                ffmpeg=FakeFFmpeg(failing_script()), progress_factory=BarRecorder(),
            )

        assert Path(video.out_path).read_bytes() == b"partial"

    def test_stream_without_result_is_an_error(self, tmp_path, session):
        video = make_video(tmp_path)
        script = [MuxProgress("00:00:10")]
        with pytest.raises(MuxingError):
            download_videos([video], session, ffmpeg=FakeFFmpeg(script), progress_factory=BarRecorder())
        assert not Path(video.out_path).exists()

    def test_interrupt_handler_restored_after_failure(self, tmp_path, session):
        before = signal.getsignal(signal.SIGINT)
        with pytest.raises(MuxingError):
            download_videos(
                [make_video(tmp_path)], session,
                ffmpeg=FakeFFmpeg(failing_script()), progress_factory=BarRecorder(),
            )
        assert signal.getsignal(signal.SIGINT) is before


class TestSkipPolicy:
    """Existing output files."""

    def test_skip_existing_file(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2)]
        Path(videos[0].out_path).write_bytes(b"done")
        ffmpeg = FakeFFmpeg(progress_script())
        refresh, calls = _refresher(session)
        settings = DownloadSettings(skip=True, keep_session=True)

        tasks = download_videos(
            videos, session, settings, ffmpeg=ffmpeg, refresh=refresh, progress_factory=BarRecorder()
        )

        assert [t.outcome for t in tasks] == [TaskOutcome.SKIPPED, TaskOutcome.SUCCESS]
        assert len(ffmpeg.commands) == 1
        assert ffmpeg.commands[0].outputs[-1][-1] == videos[1].out_path
        assert Path(videos[0].out_path).read_bytes() == b"done"

    def test_skipped_video_is_not_refreshed(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2)]
        Path(videos[1].out_path).write_bytes(b"done")
        refresh, calls = _refresher(session)
        settings = DownloadSettings(skip=True, keep_session=True)

        download_videos(
            videos, session, settings,
            ffmpeg=FakeFFmpeg(progress_script()), refresh=refresh, progress_factory=BarRecorder(),
        )

        assert calls == []


class TestKeepSession:
    """Session refresh between videos."""

    def test_distinct_sessions_after_first(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2, 3)]
        ffmpeg = FakeFFmpeg(progress_script(), progress_script(), progress_script())
        refresh, calls = _refresher(session)

        tasks = download_videos(
            videos, session, DownloadSettings(keep_session=True),
            ffmpeg=ffmpeg, refresh=refresh, progress_factory=BarRecorder(),
            video_url=lambda video_id: f"https://stream.example/video/{video_id}",
        )

        assert calls == [f"https://stream.example/video/{v.id}" for v in videos[1:]]
        assert tasks[0].session == session
        assert len({t.session.access_token for t in tasks}) == 3
        assert "Bearer token-2" in "".join(ffmpeg.commands[2].to_args())

    def test_keep_session_requires_refresh(self, tmp_path, session):
        with pytest.raises(ValueError):
            download_videos([make_video(tmp_path)], session, DownloadSettings(keep_session=True))

    def test_no_refresh_without_policy(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2)]
        refresh, calls = _refresher(session)
        tasks = download_videos(
            videos, session,
            ffmpeg=FakeFFmpeg(progress_script(), progress_script()),
            refresh=refresh, progress_factory=BarRecorder(),
        )
        assert calls == []
        assert tasks[1].session is session


class TestInterrupt:
    """SIGINT during a download."""

    def test_interrupt_during_second_video(self, tmp_path, session):
        videos = [make_video(tmp_path, i) for i in (1, 2, 3)]
        second = [MuxProgress("00:00:10"), INTERRUPT, *progress_script()]
        ffmpeg = FakeFFmpeg(progress_script(), second, progress_script())
        bars = BarRecorder()
        before = signal.getsignal(signal.SIGINT)

        with pytest.raises(KeyboardInterrupt):
            download_videos(videos, session, ffmpeg=ffmpeg, progress_factory=bars)

        assert Path(videos[0].out_path).exists()
        assert not Path(videos[1].out_path).exists()
        assert not Path(videos[2].out_path).exists()
        assert len(ffmpeg.commands) == 2
        assert bars.bars[1]._stopped
        assert ffmpeg.processes[1].terminated
        assert signal.getsignal(signal.SIGINT) is before

    def test_interrupt_with_no_cleanup(self, tmp_path, session):
        video = make_video(tmp_path)
        ffmpeg = FakeFFmpeg([INTERRUPT, *progress_script()])
        with pytest.raises(KeyboardInterrupt):
            download_videos(
                [video], session, DownloadSettings(no_cleanup=True),
                ffmpeg=ffmpeg, progress_factory=BarRecorder(),
            )
        assert Path(video.out_path).exists()


class TestSimulate:
    """Simulate mode downloads nothing."""

    def test_logs_video_info(self, tmp_path, caplog):
        video = make_video(tmp_path, captions_url="https://cdn.example.com/cc.vtt")
        with caplog.at_level(logging.INFO, logger="destream.operations.download"):
            simulate_videos([video])
        assert "Lecture 1" in caplog.text
        assert video.out_path in caplog.text
        assert "CC URL" in caplog.text
        assert not Path(video.out_path).exists()
