from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from chatdist.api import create_app
from chatdist.distribution.interfaces import RefreshSummary
from chatdist.distribution.release_notes import ReleaseNotesReader
from chatdist.distribution.types import DistributionType
from chatdist.location import LocationInfo

pytestmark = [pytest.mark.integration]


@pytest.fixture
def notes_dir(tmp_path):
    root = tmp_path / "notes"
    (root / "en").mkdir(parents=True)
    (root / "zh-CN").mkdir()
    (root / "en" / "609-3.4.0.md").write_text("Faster model loading", encoding="utf-8")
    (root / "en" / "700-3.5.0.md").write_text("## Highlights\n\n- Dark mode", encoding="utf-8")
    (root / "zh-CN" / "609-3.4.0.md").write_text("模型加载更快", encoding="utf-8")
    return root


@pytest.fixture
def orchestrator():
    mock = MagicMock()
    started = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    mock.run_refresh_cycle.return_value = RefreshSummary(started_at=started, finished_at=started)
    return mock


@pytest.fixture
def client(base_config, store, orchestrator, notes_dir):
    app = create_app(
        config=base_config,
        store=store,
        orchestrator=orchestrator,
        reader=ReleaseNotesReader(str(notes_dir), version_lines=["3.4", "3.5"]),
        start_scheduler=False,
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def no_geolocation(mocker):
    return mocker.patch(
        "chatdist.api.routes.detect_location", return_value=LocationInfo(country="Local")
    )


class TestDistributionsApi:
    def test_latest_lists_every_type(self, client):
        response = client.get("/distributions/latest")

        assert response.status_code == 200
        body = response.json()
        assert set(body) == {t.value for t in DistributionType}
        assert all(value is None for value in body.values())

    def test_latest_record_shape(self, client, store):
        store.save(DistributionType.androidHF, "https://hf/a_3.4.0_609.apk", "3.4.0", 609)

        record = client.get("/distributions/latest").json()["androidHF"]

        assert record["url"] == "https://hf/a_3.4.0_609.apk"
        assert record["version"] == "3.4.0"
        assert record["build"] == 609
        assert "id" not in record
        assert record["createdAt"].endswith("+00:00")

    def test_latest_key_filter_ignores_unknown(self, client, store):
        store.save(DistributionType.iOSAS, "https://apps.apple.com/app/id1", "latest", None)

        body = client.get(
            "/distributions/latest", params=[("key", "iOSAS"), ("key", "bogus")]
        ).json()

        assert list(body) == ["iOSAS"]
        assert body["iOSAS"]["version"] == "latest"

    def test_refresh(self, client, orchestrator, store):
        store.save(DistributionType.linuxGR, "https://gh/l.tar.gz", "3.4.0", None)

        response = client.post("/distributions/refresh")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["summary"]["fatalError"] is None
        assert body["latest"]["linuxGR"]["url"] == "https://gh/l.tar.gz"
        orchestrator.run_refresh_cycle.assert_called_once()


class TestReleaseNotesApi:
    def test_found(self, client):
        body = client.get("/distributions/release-notes", params={"build": "609"}).json()
        assert body == {"build": 609, "version": "3.4.0", "content": "Faster model loading"}

    def test_locale(self, client):
        body = client.get(
            "/distributions/release-notes", params={"build": 609, "locale": "zh-CN"}
        ).json()
        assert body["content"] == "模型加载更快"

    def test_not_found_returns_empty_content(self, client):
        body = client.get("/distributions/release-notes", params={"build": 42}).json()
        assert body == {"build": 42, "version": None, "content": ""}

    @pytest.mark.parametrize("params", [{}, {"build": "abc"}, {"build": "0"}, {"build": "-1"}])
    def test_invalid_build(self, client, params):
        response = client.get("/distributions/release-notes", params=params)
        assert response.status_code == 400

    def test_all(self, client):
        body = client.get("/distributions/release-notes/all").json()
        assert body == [
            {"build": 700, "version": "3.5.0", "content": "## Highlights\n\n- Dark mode"},
            {"build": 609, "version": "3.4.0", "content": "Faster model loading"},
        ]


class TestMiscApi:
    def test_health(self, client):
        body = client.get("/health").json()
        assert body == {"status": "active", "scheduler_running": False}

    def test_location_uses_forwarded_header(self, client, mocker):
        mock_detect = mocker.patch(
            "chatdist.api.routes.detect_location",
            return_value=LocationInfo(country="China", countryCode="CN", isMainlandChina=True),
        )

        body = client.get("/location", headers={"X-Forwarded-For": "1.2.4.8"}).json()

        mock_detect.assert_called_once_with("1.2.4.8")
        assert body["isMainlandChina"] is True


class TestPages:
    def test_download_page_default_order(self, client, store, no_geolocation):
        store.save(DistributionType.androidHF, "https://hf/a.apk", "3.4.0", 609)

        response = client.get("/", headers={"Accept-Language": "en-US,en;q=0.9"})

        assert response.status_code == 200
        html = response.text
        assert 'href="https://hf/a.apk"' in html
        assert "3.4.0 (609)" in html
        assert html.index('data-type="macosHF"') < html.index('data-type="macosAF"')
        no_geolocation.assert_called_once()

    def test_download_page_zh_cn_lists_mirrors_first(self, client, no_geolocation):
        response = client.get("/", params={"lang": "zh-CN"})

        html = response.text
        assert 'lang="zh-CN"' in html
        assert html.index('data-type="macosAF"') < html.index('data-type="macosHF"')
        no_geolocation.assert_not_called()

    def test_download_page_mainland_visitor(self, client, mocker):
        mocker.patch(
            "chatdist.api.routes.detect_location",
            return_value=LocationInfo(country="China", countryCode="CN", isMainlandChina=True),
        )

        html = client.get("/", params={"lang": "en"}).text

        assert html.index('data-type="macosAF"') < html.index('data-type="macosHF"')

    def test_changelog_page(self, client):
        html = client.get("/changelog", params={"lang": "zh-CN"}).text
        assert "模型加载更快" in html

    def test_changelog_renders_markdown(self, client):
        html = client.get("/changelog", params={"lang": "en"}).text

        assert "<h2>Highlights</h2>" in html
        assert "<li>Dark mode</li>" in html
        assert "## Highlights" not in html

    def test_repeat_views_share_one_location_lookup(self, client, no_geolocation):
        headers = {"X-Forwarded-For": "203.0.113.9"}

        client.get("/", params={"lang": "en"}, headers=headers)
        client.get("/", params={"lang": "en"}, headers=headers)
        client.get("/location", headers=headers)

        no_geolocation.assert_called_once_with("203.0.113.9")

    def test_testflight_button_is_linked(self, client, no_geolocation):
        html = client.get("/", params={"lang": "en"}).text
        assert 'href="https://testflight.apple.com/join/' in html

    def test_changelog_page_empty(self, base_config, store, tmp_path):
        app = create_app(
            config=base_config,
            store=store,
            orchestrator=MagicMock(),
            reader=ReleaseNotesReader(str(tmp_path / "empty")),
            start_scheduler=False,
        )
        with TestClient(app) as test_client:
            html = test_client.get("/changelog", params={"lang": "en"}).text
        assert "No release notes yet" in html

    def test_static_assets(self, client):
        response = client.get("/static/style.css")
        assert response.status_code == 200
