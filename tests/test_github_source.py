"""Tests for GithubReleaseSource asset filtering and version extraction."""

from unittest.mock import MagicMock

import pytest
import requests

from chatdist.distribution.github_source import GithubReleaseSource
from chatdist.distribution.registry import get_source_spec
from chatdist.distribution.types import DistributionType

pytestmark = [pytest.mark.unit]


def _release_response(release):
    response = MagicMock()
    response.json.return_value = release
    return response


def _asset(name, url=None, updated_at="2025-03-01T00:00:00Z"):
    return {
        "name": name,
        "browser_download_url": url if url is not None else f"https://github.com/dl/{name}",
        "updated_at": updated_at,
    }


RELEASE = {
    "tag_name": "v3.4.0+609",
    "assets": [
        _asset("rwkv_chat_3.4.0_609.apk"),
        _asset("RWKV-Chat-macos-universal.dmg"),
        _asset("RWKV-Chat-3.4.0-linux-x64.tar.gz"),
        _asset("RWKV-Chat-windows-x64-installer.exe"),
        _asset("RWKV-Chat-windows-x64.zip"),
        _asset("checksums.txt"),
    ],
}


def _fetch(base_config, mocker, dist_type, release=RELEASE):
    request = mocker.patch(
        "chatdist.distribution.github_source.make_github_api_request",
        return_value=_release_response(release),
    )
    result = GithubReleaseSource(base_config).fetch(dist_type, get_source_spec(dist_type))
    return result, request


class TestGithubReleaseSource:
    def test_requests_latest_release(self, base_config, mocker):
        base_config["GITHUB_TOKEN"] = "tok"
        _, request = _fetch(base_config, mocker, DistributionType.androidGR)
        request.assert_called_once_with(
            "https://api.github.com/repos/RWKV-APP/RWKV_APP/releases/latest",
            github_token="tok",
        )

    def test_android_excludes_desktop_assets(self, base_config, mocker):
        result, _ = _fetch(base_config, mocker, DistributionType.androidGR)
        assert result.success
        assert [a.name for a in result.artifacts] == ["rwkv_chat_3.4.0_609.apk"]
        assert (result.artifacts[0].version, result.artifacts[0].build) == ("3.4.0", 609)

    def test_version_from_filename(self, base_config, mocker):
        result, _ = _fetch(base_config, mocker, DistributionType.linuxGR)
        assert [(a.version, a.build) for a in result.artifacts] == [("3.4.0", None)]

    def test_falls_back_to_release_tag(self, base_config, mocker):
        """An asset name without a version takes version and build from the tag."""
        result, _ = _fetch(base_config, mocker, DistributionType.macosGR)
        assert [(a.version, a.build) for a in result.artifacts] == [("3.4.0", 609)]

    def test_windows_installer_and_zip_are_distinct(self, base_config, mocker):
        installer, _ = _fetch(base_config, mocker, DistributionType.winGR)
        archive, _ = _fetch(base_config, mocker, DistributionType.winZipGR)
        assert [a.name for a in installer.artifacts] == ["RWKV-Chat-windows-x64-installer.exe"]
        assert [a.name for a in archive.artifacts] == ["RWKV-Chat-windows-x64.zip"]

    def test_assets_sorted_newest_first(self, base_config, mocker):
        release = {
            "tag_name": "v3.4.0",
            "assets": [
                _asset("rwkv_chat_3.3.0_500.apk", updated_at="2025-01-01T00:00:00Z"),
                _asset("rwkv_chat_3.4.0_609.apk", updated_at="2025-03-01T00:00:00Z"),
            ],
        }
        result, _ = _fetch(base_config, mocker, DistributionType.androidGR, release)
        assert [a.build for a in result.artifacts] == [609, 500]

    def test_assets_without_download_url_ignored(self, base_config, mocker):
        release = {"tag_name": "v3.4.0", "assets": [_asset("rwkv_chat_3.4.0_609.apk", url="")]}
        result, _ = _fetch(base_config, mocker, DistributionType.androidGR, release)
        assert not result.success
        assert result.error_type == "empty"

    def test_unparseable_asset_and_tag_skipped(self, base_config, mocker):
        release = {"tag_name": "nightly", "assets": [_asset("RWKV-Chat-macos.dmg")]}
        result, _ = _fetch(base_config, mocker, DistributionType.macosGR, release)
        assert result.success
        assert result.artifacts == []

    def test_release_without_assets(self, base_config, mocker):
        result, _ = _fetch(base_config, mocker, DistributionType.androidGR, {"tag_name": "v1.0.0"})
        assert result.error_type == "empty"

    def test_not_found(self, base_config, mocker):
        response = MagicMock()
        response.status_code = 404
        mocker.patch(
            "chatdist.distribution.github_source.make_github_api_request",
            side_effect=requests.HTTPError("404", response=response),
        )
        warning = mocker.patch("chatdist.distribution.base.logger.warning")

        result = GithubReleaseSource(base_config).fetch(
            DistributionType.androidGR, get_source_spec(DistributionType.androidGR)
        )

        assert result.http_status_code == 404
        assert "Latest release not found" in warning.call_args.args[0]

    def test_network_failure(self, base_config, mocker):
        mocker.patch(
            "chatdist.distribution.github_source.make_github_api_request",
            side_effect=requests.Timeout("slow"),
        )
        result = GithubReleaseSource(base_config).fetch(
            DistributionType.androidGR, get_source_spec(DistributionType.androidGR)
        )
        assert result.error_type == "network"

    def test_non_object_payload(self, base_config, mocker):
        result, _ = _fetch(base_config, mocker, DistributionType.androidGR, release=["x"])
        assert result.error_type == "payload"
