"""
Tests for article session state and the article audio player.
"""

import asyncio

import pytest

from fakes import FakeFeed, FakeSpeaker, make_articles, wait_until
from news_assistant.assistant.session import ArticlePlayer, ArticleSession, PlaybackStatus
from news_assistant.errors import IndexOutOfRange, NetworkError


def _player(speaker=None, audio=None):
    feed = FakeFeed(audio=audio or {"https://audio.example/1.mp3": b"a1", "https://audio.example/2.mp3": b"a2"})
    return ArticlePlayer(speaker or FakeSpeaker(hold=[b"a1", b"a2"]), feed.download)


class TestSelection:
    def test_select_valid_index(self):
        session = ArticleSession()
        session.set_articles(make_articles(5))
        article = session.select(2)
        assert session.selected_index == 2
        assert session.selected is article
        assert session.playback_status == PlaybackStatus.IDLE

    def test_select_out_of_range_keeps_selection(self):
        session = ArticleSession()
        session.set_articles(make_articles(5))
        session.select(1)
        with pytest.raises(IndexOutOfRange):
            session.select(5)
        with pytest.raises(IndexError):
            session.select(-1)
        assert session.selected_index == 1
        assert session.playback_status == PlaybackStatus.IDLE

    def test_select_on_empty_list(self):
        session = ArticleSession()
        with pytest.raises(IndexOutOfRange):
            session.select(0)
        assert session.selected is None

    def test_set_articles_clears_selection(self):
        session = ArticleSession()
        session.set_articles(make_articles(3))
        session.select(0)
        session.set_playback_status(PlaybackStatus.PLAYING)
        session.set_articles(make_articles(2))
        assert session.selected_index is None
        assert session.playback_status == PlaybackStatus.IDLE
        assert len(session) == 2

    def test_titles(self):
        session = ArticleSession()
        session.set_articles(make_articles(2))
        assert session.titles == ["Giá vàng hôm nay tăng mạnh", "Ông Trump gặp lãnh đạo Iran"]

    def test_status_requires_selection(self):
        session = ArticleSession()
        session.set_articles(make_articles(2))
        with pytest.raises(ValueError):
            session.set_playback_status(PlaybackStatus.PLAYING)
        session.set_playback_status(PlaybackStatus.IDLE)
        session.select(0)
        session.set_playback_status("paused")
        assert session.playback_status == PlaybackStatus.PAUSED


class TestNavigation:
    def test_advance_and_retreat(self):
        session = ArticleSession()
        session.set_articles(make_articles(3))
        assert session.advance() is None
        assert session.retreat() is None

        session.select(0)
        assert session.advance() == 1
        assert session.retreat() is None

        session.select(2)
        assert session.advance() is None
        assert session.retreat() == 1


class TestArticlePlayer:
    def test_selecting_unloads_previous_audio(self):
        async def run():
            speaker = FakeSpeaker(hold=[b"a1", b"a2"])
            player = _player(speaker)
            session = ArticleSession(player)
            session.set_articles(make_articles(3))

            session.select(0)
            await player.load("https://audio.example/1.mp3")
            player.play()
            first = speaker.last(b"a1")
            assert player.is_playing

            session.select(1)
            return first, player

        first, player = asyncio.run(run())
        assert first.unloaded is True
        assert player.is_loaded is False

    def test_rejected_selection_still_stops_audio(self):
        async def run():
            speaker = FakeSpeaker(hold=[b"a1"])
            player = _player(speaker)
            session = ArticleSession(player)
            session.set_articles(make_articles(2))
            session.select(0)
            await player.load("https://audio.example/1.mp3")
            player.play()
            with pytest.raises(IndexOutOfRange):
                session.select(7)
            return speaker.last(b"a1")

        assert asyncio.run(run()).unloaded is True

    def test_load_replaces_previous(self):
        async def run():
            speaker = FakeSpeaker(hold=[b"a1", b"a2"])
            player = _player(speaker)
            await player.load("https://audio.example/1.mp3")
            await player.load("https://audio.example/2.mp3")
            return speaker, player

        speaker, player = asyncio.run(run())
        assert speaker.last(b"a1").unloaded is True
        assert player.url == "https://audio.example/2.mp3"

    def test_pause_resume(self):
        async def run():
            speaker = FakeSpeaker(hold=[b"a1"])
            player = _player(speaker)
            await player.load("https://audio.example/1.mp3")
            player.play()
            player.pause()
            paused = player.is_playing
            player.resume()
            return paused, player.is_playing

        assert asyncio.run(run()) == (False, True)

    def test_wait_finished_natural_end(self):
        async def run():
            player = _player(FakeSpeaker())
            await player.load("https://audio.example/1.mp3")
            player.play()
            finished = await player.wait_finished()
            return finished, player.is_loaded

        assert asyncio.run(run()) == (True, False)

    def test_wait_finished_unloads_sound(self):
        speaker = FakeSpeaker()

        async def run():
            player = _player(speaker)
            await player.load("https://audio.example/1.mp3")
            player.play()
            return await player.wait_finished()

        assert asyncio.run(run()) is True
        sound = speaker.sounds[-1]
        assert sound.completed is True
        assert sound.unloaded is True

    def test_wait_finished_after_stop(self):
        async def run():
            speaker = FakeSpeaker(hold=[b"a1"])
            player = _player(speaker)
            await player.load("https://audio.example/1.mp3")
            player.play()
            waiter = asyncio.create_task(player.wait_finished())
            await wait_until(lambda: speaker.played)
            player.stop()
            return await waiter

        assert asyncio.run(run()) is False

    def test_wait_finished_nothing_loaded(self):
        assert asyncio.run(_player().wait_finished()) is False

    def test_download_error_propagates(self):
        async def run():
            player = _player()
            await player.load("https://audio.example/missing.mp3")

        with pytest.raises(NetworkError):
            asyncio.run(run())
