from itertools import product
from pathlib import Path

import pytest

from grpcsys.errors import ConfigurationError, MissingModuleError
from grpcsys.models import FeatureSet
from grpcsys.modules import BORINGSSL_MODULE, FETCH_HINT, required_modules, verify_modules


def test_feature_names_expand_implications() -> None:
    features = FeatureSet.from_names(["openssl-vendored"])

    assert features == FeatureSet(secure=True, openssl=True, openssl_vendored=True)
    assert features.external_crypto is False
    assert features.names() == ("secure", "openssl", "openssl-vendored")


def test_external_crypto_requires_non_vendored_openssl() -> None:
    assert FeatureSet.from_names(["openssl"]).external_crypto is True
    assert FeatureSet.from_names(["secure"]).external_crypto is False
    assert FeatureSet().external_crypto is False


def test_unknown_feature_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Unknown feature"):
        FeatureSet.from_names(["secure", "tls13"])


@pytest.mark.parametrize(
    "kwargs",
    [{"openssl": True}, {"secure": True, "openssl_vendored": True}],
)
def test_inconsistent_feature_set_is_rejected(kwargs: dict[str, bool]) -> None:
    with pytest.raises(ConfigurationError):
        FeatureSet(**kwargs)


def test_boringssl_module_only_required_without_external_crypto_provider() -> None:
    secure_boringssl = set(required_modules(FeatureSet(secure=True)))
    others = [
        FeatureSet(secure=secure, openssl=openssl, no_omit_frame_pointer=fp)
        for secure, openssl, fp in product((False, True), repeat=3)
        if not (openssl and not secure) and not (secure and not openssl)
    ]

    assert BORINGSSL_MODULE in secure_boringssl
    for features in others:
        modules = set(required_modules(features))
        assert modules < secure_boringssl
        assert BORINGSSL_MODULE not in modules


def test_verify_modules_accepts_populated_tree(source_tree: Path) -> None:
    verified = verify_modules(source_tree, FeatureSet(secure=True))

    assert [path.relative_to(source_tree).as_posix() for path in verified] == list(
        required_modules(FeatureSet(secure=True)),
    )


def test_verify_modules_rejects_empty_module(source_tree: Path) -> None:
    module = source_tree / "grpc" / "third_party" / "address_sorting"
    (module / "CMakeLists.txt").unlink()

    with pytest.raises(MissingModuleError) as excinfo:
        verify_modules(source_tree, FeatureSet())

    assert excinfo.value.context["module"] == "grpc/third_party/address_sorting"
    assert excinfo.value.hint == FETCH_HINT
    assert "git submodule update --init --recursive" in str(excinfo.value)


def test_verify_modules_rejects_missing_module(tmp_path: Path) -> None:
    with pytest.raises(MissingModuleError) as excinfo:
        verify_modules(tmp_path, FeatureSet())

    assert excinfo.value.context["module"] == "grpc"
    assert excinfo.value.code == "E_MISSING_MODULE"
