"""
Unit Tests for the CLI entry point
"""
import pytest
from rich.console import Console

from cli.client import OpsFinderClient
from cli.config import CLIConfig
from cli.main import create_parser, run_command
from cli.renderer import ResponseRenderer


class FakeClient(OpsFinderClient):
    """Records calls instead of talking to a server"""

    def __init__(self, config, search_response=None):
        super().__init__(config)
        self.search_response = search_response or {'matches': [], 'noMatches': True}
        self.calls = []

    async def search(self, text, occurrence_count=None, match_mode='BOTH'):
        self.calls.append(('search', text, occurrence_count, match_mode))
        return self.search_response

    async def categories(self):
        self.calls.append(('categories',))
        return ['Database', 'Network']


@pytest.fixture
def console() -> Console:
    return Console(record=True, width=160)


@pytest.fixture
def renderer(console) -> ResponseRenderer:
    return ResponseRenderer(console)


class TestParser:

    def test_search_arguments(self):
        args = create_parser().parse_args(['search', 'link eth0 down', '-c', '4', '-m', 'exact'])

        assert args.command == 'search'
        assert args.text == 'link eth0 down'
        assert args.count == 4
        assert args.mode == 'EXACT'

    def test_search_defaults(self):
        args = create_parser().parse_args(['search', 'timeout'])

        assert args.count is None
        assert args.mode == 'BOTH'

    def test_invalid_mode_rejected(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(['search', 'timeout', '-m', 'partial'])


class TestRunCommand:

    @pytest.mark.asyncio
    async def test_requires_login(self, tmp_path, renderer, console):
        config = CLIConfig(config_dir=str(tmp_path))
        client = FakeClient(config)
        args = create_parser().parse_args(['categories'])

        assert await run_command(args, config, client, renderer) == 1
        assert client.calls == []
        assert 'Authentication required' in console.export_text()

    @pytest.mark.asyncio
    async def test_search_renders_matches(self, tmp_path, renderer, console):
        config = CLIConfig(config_dir=str(tmp_path), access_token='token')
        client = FakeClient(config, search_response={
            'noMatches': False,
            'matches': [{
                'techMessage': {'id': 1, 'category': 'Database', 'severity': 'HIGH'},
                'matchType': 'EXACT',
                'matchScore': 1.0,
                'matchedText': 'connection timeout after 30s',
                'extractedVariables': {'seconds': '30'},
                'recommendedAction': {'id': 2, 'occurrenceMin': 6, 'occurrenceMax': None,
                                      'actionText': 'escalate', 'priority': 1},
                'allActionLevels': [],
            }],
        })
        args = create_parser().parse_args(['search', 'connection timeout after 30s', '-c', '7'])

        assert await run_command(args, config, client, renderer) == 0
        assert client.calls == [('search', 'connection timeout after 30s', 7, 'BOTH')]
        output = console.export_text()
        assert 'Database' in output
        assert 'escalate' in output

    @pytest.mark.asyncio
    async def test_search_without_matches(self, tmp_path, renderer, console):
        config = CLIConfig(config_dir=str(tmp_path), access_token='token')
        args = create_parser().parse_args(['search', 'nothing to see'])

        assert await run_command(args, config, FakeClient(config), renderer) == 0
        assert 'No matching tech messages' in console.export_text()

    @pytest.mark.asyncio
    async def test_categories(self, tmp_path, renderer, console):
        config = CLIConfig(config_dir=str(tmp_path), access_token='token')
        args = create_parser().parse_args(['categories'])

        assert await run_command(args, config, FakeClient(config), renderer) == 0
        assert 'Network' in console.export_text()
