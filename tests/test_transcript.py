"""Tests for the per-channel transcript sink."""

import os
import stat

import pytest

from votebot.transcript import TranscriptSink


class TestTranscriptSink:
    @pytest.mark.asyncio
    async def test_appends_lines_per_name(self, tmp_path):
        sink = TranscriptSink(str(tmp_path / "irc"))

        await sink.append("#vote", ":alice!a@host PRIVMSG #vote :aye")
        await sink.append("#vote", ":bob!b@host PRIVMSG #vote :no")
        await sink.append("votebot", ":alice!a@host PRIVMSG votebot :help")
        await sink.close()

        assert (tmp_path / "irc" / "log_#vote").read_text(encoding="utf-8") == (
            ":alice!a@host PRIVMSG #vote :aye\n:bob!b@host PRIVMSG #vote :no\n"
        )
        assert (tmp_path / "irc" / "log_votebot").read_text(encoding="utf-8") == (
            ":alice!a@host PRIVMSG votebot :help\n"
        )

    @pytest.mark.asyncio
    async def test_appends_to_existing_file(self, tmp_path):
        directory = tmp_path / "irc"
        directory.mkdir()
        (directory / "log_#meeting").write_text("earlier\n", encoding="utf-8")

        sink = TranscriptSink(str(directory))
        await sink.append("#meeting", "later")
        await sink.close()

        assert (directory / "log_#meeting").read_text(encoding="utf-8") == "earlier\nlater\n"

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    @pytest.mark.asyncio
    async def test_permissions(self, tmp_path):
        old_umask = os.umask(0o022)
        try:
            sink = TranscriptSink(str(tmp_path / "irc"))
            await sink.append("#vote", "line")
            await sink.close()
        finally:
            os.umask(old_umask)

        assert stat.S_IMODE((tmp_path / "irc").stat().st_mode) == 0o750
        assert stat.S_IMODE((tmp_path / "irc" / "log_#vote").stat().st_mode) == 0o640

    @pytest.mark.asyncio
    async def test_disabled_sink_writes_nothing(self, tmp_path):
        sink = TranscriptSink(str(tmp_path / "irc"), enabled=False)
        await sink.append("#vote", "line")
        await sink.close()
        assert not (tmp_path / "irc").exists()

    @pytest.mark.asyncio
    async def test_errors_are_logged_not_raised(self, tmp_path, caplog):
        blocker = tmp_path / "irc"
        blocker.write_text("not a directory", encoding="utf-8")

        sink = TranscriptSink(str(blocker))
        await sink.append("#vote", "line")
        await sink.close()

        assert "error writing transcript for #vote" in caplog.text
