import pytest


class StaticFetcher:
    """FileFetcher double: serves fixed bytes per URL and records calls."""

    def __init__(self, files):
        self.files = files
        self.calls = []

    async def fetch(self, file_url):
        self.calls.append(file_url)
        return self.files[file_url]


class RecordingSink:
    def __init__(self):
        self.writes = []

    def write(self, artifact_id, title, chart_json):
        self.writes.append((artifact_id, title, chart_json))


@pytest.fixture
def sales_csv():
    return (
        "date,region,sales\n"
        "2024-01-01,East,100\n"
        "2024-01-02,West,150\n"
        "2024-01-03,East,50\n"
        "2024-01-04,North,\n"
    )


@pytest.fixture
def make_fetcher():
    def _make(files):
        return StaticFetcher({url: content.encode("utf-8") for url, content in files.items()})
    return _make


@pytest.fixture
def sink():
    return RecordingSink()
