import pytest

from chatdist.constants import AIFASTHUB_ENDPOINT, HF_MIRROR_ENDPOINT
from chatdist.distribution.registry import (
    ANDROID_ASSET_RX,
    UNSOURCED_TYPES,
    WIN_INSTALLER_ASSET_RX,
    get_source_spec,
)
from chatdist.distribution.types import DistributionType, Provider, is_fixed_url_type

pytestmark = [pytest.mark.unit]


def test_every_type_is_sourced_or_explicitly_unsourced():
    for dist_type in DistributionType:
        spec = get_source_spec(dist_type)
        assert (spec is None) == (dist_type in UNSOURCED_TYPES), dist_type


def test_listing_family_endpoints():
    assert get_source_spec(DistributionType.linuxHF).endpoint is None
    assert get_source_spec(DistributionType.linuxAF).endpoint == AIFASTHUB_ENDPOINT
    assert get_source_spec(DistributionType.linuxAF).append_download_param is True
    assert get_source_spec(DistributionType.linuxHFM).endpoint == HF_MIRROR_ENDPOINT
    assert get_source_spec(DistributionType.linuxHFM).append_download_param is False


def test_same_folder_across_mirrors():
    folders = {
        get_source_spec(t).folder
        for t in (DistributionType.winZipHF, DistributionType.winZipAF, DistributionType.winZipHFM)
    }
    assert folders == {"windows-x64"}


def test_provider_assignment():
    assert get_source_spec(DistributionType.macosGR).provider is Provider.GITHUB
    assert get_source_spec(DistributionType.androidPgyer).provider is Provider.PGYER
    assert get_source_spec(DistributionType.iOSAS).provider is Provider.APP_STORE
    assert get_source_spec(DistributionType.androidGooglePlay).provider is Provider.PLAY_STORE


@pytest.mark.parametrize(
    "name, matches",
    [("RWKV_Chat_3.4.0_609.apk", True), ("RWKV_Chat_linux_3.4.0.apk", False)],
)
def test_android_asset_filter(name, matches):
    assert bool(ANDROID_ASSET_RX.search(name)) is matches


def test_windows_installer_filter():
    assert WIN_INSTALLER_ASSET_RX.search("rwkv-chat-windows-x64-installer.exe")
    assert WIN_INSTALLER_ASSET_RX.search("RWKV_Setup.exe")
    assert not WIN_INSTALLER_ASSET_RX.search("rwkv-chat-windows-x64.zip")


def test_from_key():
    assert DistributionType.from_key("androidHF") is DistributionType.androidHF
    assert DistributionType.from_key("androidhf") is None
    assert str(DistributionType.iOSAS) == "iOSAS"


def test_fixed_url_types():
    assert is_fixed_url_type(DistributionType.iOSAS)
    assert is_fixed_url_type(DistributionType.androidGooglePlay)
    assert not is_fixed_url_type(DistributionType.androidPgyer)
