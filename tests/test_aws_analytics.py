import pytest

from tfguard import aws_analytics
from tfguard.model import Attribute, Block, Context, Range, Severity, get_registered_checks

BLOCK_RANGE = Range("main.tf", 1, 20)
CHILD_RANGE = Range("main.tf", 5, 10)
ATTR_RANGE = Range("main.tf", 7, 7)


def _check(code):
    return next(check for check in get_registered_checks() if check.code == code)


def _attr(name, value):
    return Attribute(name, value, ATTR_RANGE)


def _resource(label, *children, **attrs):
    return Block(
        "resource",
        [label, "my_res"],
        {key: _attr(key, value) for key, value in attrs.items()},
        list(children),
        BLOCK_RANGE,
    )


def _child(kind, *children, **attrs):
    return Block(
        kind,
        [],
        {key: _attr(key, value) for key, value in attrs.items()},
        list(children),
        CHILD_RANGE,
    )


def _msk(*children):
    return _resource("aws_msk_cluster", *children)


def _es(*children):
    return _resource("aws_elasticsearch_domain", *children)


# --- AWS022 -------------------------------------------------------------


def test_msk_missing_encryption_info():
    results = _check("AWS022").run(_msk(), Context())
    assert len(results) == 1
    assert results[0].rule_id == "AWS022"
    assert results[0].severity is Severity.WARNING
    assert results[0].range == BLOCK_RANGE
    assert "missing encryption_info block" in results[0].description


def test_msk_missing_encryption_in_transit():
    results = _check("AWS022").run(_msk(_child("encryption_info")), Context())
    assert len(results) == 1
    assert "missing encryption_in_transit block" in results[0].description
    assert results[0].range == BLOCK_RANGE


def test_msk_missing_client_broker():
    block = _msk(_child("encryption_info", _child("encryption_in_transit", in_cluster=True)))
    results = _check("AWS022").run(block, Context())
    assert len(results) == 1
    assert "missing client_broker block" in results[0].description
    assert results[0].severity is Severity.WARNING


def test_msk_plaintext_only_is_error():
    block = _msk(
        _child("encryption_info", _child("encryption_in_transit", client_broker="PLAINTEXT"))
    )
    results = _check("AWS022").run(block, Context())
    assert len(results) == 1
    assert results[0].severity is Severity.ERROR
    assert results[0].range == ATTR_RANGE
    assert results[0].description == (
        "Resource 'aws_msk_cluster.my_res' defines a MSK cluster that only allows "
        "plaintext data in transit."
    )
    assert "PLAINTEXT" in results[0].range_annotation


def test_msk_tls_plaintext_is_warning():
    block = _msk(
        _child("encryption_info", _child("encryption_in_transit", client_broker="TLS_PLAINTEXT"))
    )
    results = _check("AWS022").run(block, Context())
    assert len(results) == 1
    assert results[0].severity is Severity.WARNING
    assert results[0].range == ATTR_RANGE
    assert "TLS_PLAINTEXT" in results[0].range_annotation


def test_msk_tls_passes():
    block = _msk(_child("encryption_info", _child("encryption_in_transit", client_broker="TLS")))
    assert _check("AWS022").run(block, Context()) == []


# --- AWS031 / AWS032 / AWS033 ------------------------------------------


@pytest.mark.parametrize(
    "code, child_name, attr_name",
    [
        ("AWS031", "encrypt_at_rest", "enabled"),
        ("AWS032", "node_to_node_encryption", "enabled"),
        ("AWS033", "domain_endpoint_options", "enforce_https"),
    ],
)
def test_elasticsearch_missing_child_block(code, child_name, attr_name):
    results = _check(code).run(_es(), Context())
    assert len(results) == 1
    assert results[0].severity is Severity.ERROR
    assert results[0].range == BLOCK_RANGE
    assert f"missing {child_name} block" in results[0].description


@pytest.mark.parametrize(
    "code, child_name, attr_name",
    [
        ("AWS031", "encrypt_at_rest", "enabled"),
        ("AWS032", "node_to_node_encryption", "enabled"),
        ("AWS033", "domain_endpoint_options", "enforce_https"),
    ],
)
def test_elasticsearch_missing_attribute(code, child_name, attr_name):
    results = _check(code).run(_es(_child(child_name)), Context())
    assert len(results) == 1
    assert results[0].range == CHILD_RANGE
    assert f"missing {attr_name} attribute" in results[0].description


@pytest.mark.parametrize("value", [False, "false", "yes"])
@pytest.mark.parametrize(
    "code, child_name, attr_name",
    [
        ("AWS031", "encrypt_at_rest", "enabled"),
        ("AWS032", "node_to_node_encryption", "enabled"),
        ("AWS033", "domain_endpoint_options", "enforce_https"),
    ],
)
def test_elasticsearch_disabled_flag(code, child_name, attr_name, value):
    block = _es(_child(child_name, **{attr_name: value}))
    results = _check(code).run(block, Context())
    assert len(results) == 1
    assert results[0].range == CHILD_RANGE
    assert results[0].range_annotation == ""
    assert "(enabled attribute set to false)" in results[0].description


@pytest.mark.parametrize("value", [True, "true"])
@pytest.mark.parametrize(
    "code, child_name, attr_name",
    [
        ("AWS031", "encrypt_at_rest", "enabled"),
        ("AWS032", "node_to_node_encryption", "enabled"),
        ("AWS033", "domain_endpoint_options", "enforce_https"),
    ],
)
def test_elasticsearch_enabled_flag_passes(code, child_name, attr_name, value):
    block = _es(_child(child_name, **{attr_name: value}))
    assert _check(code).run(block, Context()) == []


def test_unencrypted_domain_message():
    results = aws_analytics.check_unencrypted_elasticsearch_domain(
        _check("AWS031"), _es(), Context()
    )
    assert results[0].description == (
        "Resource 'aws_elasticsearch_domain.my_res' defines an unencrypted Elasticsearch "
        "domain (missing encrypt_at_rest block)."
    )


# --- AWS034 -------------------------------------------------------------


def test_tls_policy_no_endpoint_block_is_ignored():
    assert _check("AWS034").run(_es(), Context()) == []


def test_tls_policy_missing_defaults_to_outdated():
    block = _es(_child("domain_endpoint_options", enforce_https=True))
    results = _check("AWS034").run(block, Context())
    assert len(results) == 1
    assert results[0].range == CHILD_RANGE
    assert "(defaults to Policy-Min-TLS-1-0-2019-07)" in results[0].description


def test_tls_policy_outdated_value():
    block = _es(
        _child("domain_endpoint_options", tls_security_policy="Policy-Min-TLS-1-0-2019-07")
    )
    results = _check("AWS034").run(block, Context())
    assert len(results) == 1
    assert results[0].range == ATTR_RANGE
    assert "(set to Policy-Min-TLS-1-0-2019-07)" in results[0].description
    assert "Policy-Min-TLS-1-0-2019-07" in results[0].range_annotation


def test_tls_policy_modern_passes():
    block = _es(
        _child("domain_endpoint_options", tls_security_policy="Policy-Min-TLS-1-2-2019-07")
    )
    assert _check("AWS034").run(block, Context()) == []


def test_checks_ignore_other_resource_types():
    block = _resource("aws_s3_bucket")
    for code in ("AWS022", "AWS031", "AWS032", "AWS033", "AWS034"):
        assert _check(code).run(block, Context()) == []


def test_registered_summaries():
    assert _check("AWS031").documentation.summary == "Elasticsearch domain isn't encrypted at rest."
    assert _check("AWS022").documentation.summary == "A MSK cluster allows unencrypted data in transit."