"""Tests for game-log files, the nflverse fetcher and week-range loading."""

import json

import pytest
import requests

from nfl_parlay.config import settings
from nfl_parlay.data.cache import MemoryCacheStore
from nfl_parlay.data.fetcher import GameLogFetchError, NflverseFetcher
from nfl_parlay.data.gamelog_loader import (
    GameLogLoadError,
    load_game_logs_file,
    load_game_logs_for_range,
)
from nfl_parlay.data.stats_schema import normalize_game_log

RECORDS = [
    {'player_id': 'p1', 'game_date': '2024-09-08', 'passing_yards': 250},
    {'playerId': 'p2', 'gameDate': '2024-09-08', 'rec_yards': 61},
]

RELEASES = [
    {
        'tag_name': 'stats_player',
        'assets': [
            {'name': 'stats_player_week_2023.csv', 'browser_download_url': 'https://dl.test/2023.csv'},
            {'name': 'stats_player_week_2024.parquet', 'browser_download_url': 'https://dl.test/2024.parquet'},
            {'name': 'stats_player_week_2024.csv', 'browser_download_url': 'https://dl.test/2024.csv'},
        ],
    },
    {'tag_name': 'pbp', 'assets': [{'name': 'play_by_play_2024.csv', 'browser_download_url': 'https://dl.test/pbp.csv'}]},
]

PLAYER_WEEK_CSV = (
    "player_id,player_display_name,position,recent_team,opponent_team,season,week,"
    "passing_yards,rushing_yards,receiving_yards,receptions,passing_tds,targets,carries\n"
    "00-1,Pat Quarterback,QB,KC,BAL,2024,1,291,3,0,0,1,,2\n"
    "00-1,Pat Quarterback,QB,KC,CIN,2024,2,238,12,0,0,1,,4\n"
    "00-2,Tee End,TE,KC,BAL,2024,1,0,0,34,3,0,5,\n"
)


class StubResponse:
    def __init__(self, status_code=200, text='', payload=None):
        self.status_code = status_code
        self.text = text
        self._payload = payload

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class StubSession:
    """Maps URLs to canned responses and records every call."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        return self.routes[url]


@pytest.fixture
def session():
    return StubSession({
        settings.NFLVERSE_RELEASES_URL: StubResponse(payload=RELEASES),
        'https://dl.test/2024.csv': StubResponse(text=PLAYER_WEEK_CSV),
    })


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr('nfl_parlay.data.fetcher.time.sleep', lambda seconds: None)


class TestLoadGameLogsFile:
    """Local JSON files."""

    def test_top_level_array(self, tmp_path) -> None:
        path = tmp_path / 'logs.json'
        path.write_text(json.dumps(RECORDS))

        result = load_game_logs_file(path)

        assert result.file_path == str(path)
        assert [log.player_id for log in result.game_logs] == ['p1', 'p2']
        assert result.game_logs[0].pass_yards == 250.0

    @pytest.mark.parametrize("key", ['gamelogs', 'data'])
    def test_wrapped_array(self, tmp_path, key) -> None:
        path = tmp_path / 'logs.json'
        path.write_text(json.dumps({key: RECORDS}))
        assert len(load_game_logs_file(path).game_logs) == 2

    def test_default_sample_file(self) -> None:
        result = load_game_logs_file()
        assert result.file_path == str(settings.GAMELOGS_FILE)
        assert len(result.game_logs) > 0

    @pytest.mark.parametrize("content,error", [
        ('', 'Game log file is empty'),
        ('{not json', 'Failed to parse game log JSON'),
        ('{"players": []}', 'Invalid game log format'),
        ('[1, 2]', 'Invalid game log format'),
        ('[]', 'Game log file contains no records'),
    ])
    def test_bad_files(self, tmp_path, content, error) -> None:
        path = tmp_path / 'logs.json'
        path.write_text(content)

        with pytest.raises(GameLogLoadError) as exc_info:
            load_game_logs_file(path)

        assert exc_info.value.error == error
        assert exc_info.value.file_path == str(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(GameLogLoadError, match='not found'):
            load_game_logs_file(tmp_path / 'missing.json')


class TestNflverseFetcher:
    """Release discovery and CSV mapping through a stub session."""

    def test_discovers_csv_asset(self, session) -> None:
        fetcher = NflverseFetcher(session=session, max_retries=1)
        assert fetcher.discover_source_url(2024) == 'https://dl.test/2024.csv'

    def test_source_url_is_cached(self, session) -> None:
        store = MemoryCacheStore()
        fetcher = NflverseFetcher(session=session, store=store, max_retries=1)

        fetcher.discover_source_url(2024)
        fetcher.discover_source_url(2024)

        assert session.calls.count(settings.NFLVERSE_RELEASES_URL) == 1
        assert store.get('source_url_2024') == 'https://dl.test/2024.csv'

    def test_missing_season_lists_available(self, session) -> None:
        fetcher = NflverseFetcher(session=session, max_retries=1)

        with pytest.raises(GameLogFetchError) as exc_info:
            fetcher.discover_source_url(2030)

        assert exc_info.value.available_seasons == [2023, 2024]
        assert exc_info.value.suggested_season == 2024

    def test_http_failure_retries_then_raises(self, no_sleep) -> None:
        session = StubSession({settings.NFLVERSE_RELEASES_URL: StubResponse(503, text='x' * 500)})
        fetcher = NflverseFetcher(session=session, max_retries=3)

        with pytest.raises(GameLogFetchError) as exc_info:
            fetcher.discover_source_url(2024)

        assert len(session.calls) == 3
        detail = exc_info.value.fetch_errors[0]
        assert detail.status_code == 503
        assert detail.method == 'GET'
        assert len(detail.response_body_preview) == 200

    def test_fetch_week_maps_columns(self, session) -> None:
        fetcher = NflverseFetcher(session=session, max_retries=1)

        logs, source_url = fetcher.fetch_week(2024, 1)

        assert source_url == 'https://dl.test/2024.csv'
        assert [log.player_id for log in logs] == ['00-1', '00-2']
        qb = logs[0]
        assert qb.player_name == 'Pat Quarterback'
        assert qb.team == 'KC'
        assert qb.opponent == 'BAL'
        assert qb.week == 1
        assert qb.season == 2024
        assert qb.pass_yards == 291.0
        assert qb.rush_attempts == 2.0
        assert qb.targets is None
        assert qb.game_id == '2024_1_KC'
        assert qb.game_date == '2024-09-01'

        tight_end = logs[1]
        assert tight_end.rec_yards == 34.0
        assert tight_end.targets == 5.0
        assert tight_end.rush_attempts is None

    def test_download_failure(self, session, no_sleep) -> None:
        session.routes['https://dl.test/2024.csv'] = StubResponse(404, text='Not Found')
        fetcher = NflverseFetcher(session=session, max_retries=2)

        with pytest.raises(GameLogFetchError) as exc_info:
            fetcher.fetch_week(2024, 1)

        assert exc_info.value.fetch_errors[0].url == 'https://dl.test/2024.csv'
        assert exc_info.value.fetch_errors[0].response_body_preview == 'Not Found'


class StubFetcher:
    """Fetcher double returning one log per week, failing on chosen weeks."""

    def __init__(self, failing_weeks=()):
        self.failing_weeks = set(failing_weeks)
        self.calls = []

    def fetch_week(self, season, week):
        self.calls.append(week)
        if week in self.failing_weeks:
            raise GameLogFetchError(f"week {week} unavailable")
        log = normalize_game_log({
            'player_id': f"p{week}",
            'week': week,
            'season': season,
            'game_date': '2024-09-08',
        })
        return [log], f"https://dl.test/{season}.csv"


class TestLoadGameLogsForRange:

    def test_fetches_and_caches_each_week(self) -> None:
        store = MemoryCacheStore()
        fetcher = StubFetcher()

        first = load_game_logs_for_range(2024, 1, 2, fetcher=fetcher, store=store)
        second = load_game_logs_for_range(2024, 1, 2, fetcher=fetcher, store=store)

        assert [log.player_id for log in first.game_logs] == ['p1', 'p2']
        assert first.sources == ['https://dl.test/2024.csv'] * 2
        assert fetcher.calls == [1, 2]
        assert second.sources == ['cache:gamelogs_2024_1', 'cache:gamelogs_2024_2']
        assert second.game_logs == first.game_logs

    def test_failed_week_is_skipped(self) -> None:
        result = load_game_logs_for_range(
            2024, 1, 3, fetcher=StubFetcher(failing_weeks=[2]), store=MemoryCacheStore()
        )
        assert [log.week for log in result.game_logs] == [1, 3]
        assert len(result.errors) == 1
        assert 'week 2' in result.errors[0]

    def test_inverted_range_raises(self) -> None:
        with pytest.raises(ValueError):
            load_game_logs_for_range(2024, 5, 1, fetcher=StubFetcher(), store=MemoryCacheStore())
