"""Checks for MSK and Elasticsearch encryption and transport settings."""

from __future__ import annotations

from typing import Optional

from .model import (
    Attribute,
    Block,
    Check,
    CheckDocumentation,
    Context,
    Provider,
    Result,
    Severity,
    register_check,
)

UNENCRYPTED_MSK_BROKER = "AWS022"
UNENCRYPTED_ELASTICSEARCH_DOMAIN = "AWS031"
PLAINTEXT_NODE_TO_NODE_TRAFFIC = "AWS032"
UNENFORCED_HTTPS_ENDPOINT = "AWS033"
OUTDATED_TLS_POLICY_ENDPOINT = "AWS034"

OUTDATED_ELASTICSEARCH_TLS_POLICY = "Policy-Min-TLS-1-0-2019-07"


def _is_true(attr: Attribute) -> bool:
    """Whether the attribute holds boolean true or the string ``"true"``."""
    value = attr.value
    return value is True or (isinstance(value, str) and value == "true")


def check_unencrypted_msk_broker(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag MSK clusters that allow plaintext data in transit."""
    name = block.full_name()
    prefix = (
        f"Resource '{name}' defines a MSK cluster that allows plaintext as well as "
        "TLS encrypted data in transit"
    )
    info = block.get_block("encryption_info")
    if info is None:
        return [
            check.new_result(
                f"{prefix} (missing encryption_info block).", block.range, Severity.WARNING
            )
        ]
    in_transit = info.get_block("encryption_in_transit")
    if in_transit is None:
        return [
            check.new_result(
                f"{prefix} (missing encryption_in_transit block).", block.range, Severity.WARNING
            )
        ]
    client_broker = in_transit.get_attribute("client_broker")
    if client_broker is None:
        return [
            check.new_result(
                f"{prefix} (missing client_broker block).", block.range, Severity.WARNING
            )
        ]
    if client_broker.value == "PLAINTEXT":
        return [
            check.new_result_with_value_annotation(
                f"Resource '{name}' defines a MSK cluster that only allows plaintext data in transit.",
                client_broker.range,
                client_broker,
                Severity.ERROR,
            )
        ]
    if client_broker.value == "TLS_PLAINTEXT":
        return [
            check.new_result_with_value_annotation(
                f"{prefix}.",
                client_broker.range,
                client_broker,
                Severity.WARNING,
            )
        ]
    return []


def _enabled_flag_results(
    check: Check,
    block: Block,
    child_name: str,
    attr_name: str,
    what: str,
) -> list[Result]:
    """Shared logic for nested blocks holding a boolean-like switch that must be true."""
    name = block.full_name()
    child = block.get_block(child_name)
    if child is None:
        return [
            check.new_result(
                f"Resource '{name}' defines {what} (missing {child_name} block).",
                block.range,
                Severity.ERROR,
            )
        ]
    attr: Optional[Attribute] = child.get_attribute(attr_name)
    if attr is None:
        return [
            check.new_result(
                f"Resource '{name}' defines {what} (missing {attr_name} attribute).",
                child.range,
                Severity.ERROR,
            )
        ]
    if not _is_true(attr):
        return [
            check.new_result(
                f"Resource '{name}' defines {what} (enabled attribute set to false).",
                child.range,
                Severity.ERROR,
            )
        ]
    return []


def check_unencrypted_elasticsearch_domain(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag Elasticsearch domains without encryption at rest."""
    return _enabled_flag_results(
        check, block, "encrypt_at_rest", "enabled", "an unencrypted Elasticsearch domain"
    )


def check_plaintext_node_to_node_traffic(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag Elasticsearch domains without node-to-node encryption."""
    return _enabled_flag_results(
        check,
        block,
        "node_to_node_encryption",
        "enabled",
        "an Elasticsearch domain with plaintext traffic",
    )


def check_unenforced_https_endpoint(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag Elasticsearch domains whose endpoint does not enforce HTTPS."""
    return _enabled_flag_results(
        check,
        block,
        "domain_endpoint_options",
        "enforce_https",
        "an Elasticsearch domain with plaintext traffic",
    )


def check_outdated_tls_policy_endpoint(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag Elasticsearch endpoints using or defaulting to the TLS 1.0 policy."""
    endpoint = block.get_block("domain_endpoint_options")
    if endpoint is None:
        # A missing endpoint block is reported by the HTTPS enforcement check.
        return []
    name = block.full_name()
    policy = endpoint.get_attribute("tls_security_policy")
    if policy is None:
        return [
            check.new_result(
                f"Resource '{name}' defines an Elasticsearch domain with an outdated TLS policy "
                f"(defaults to {OUTDATED_ELASTICSEARCH_TLS_POLICY}).",
                endpoint.range,
                Severity.ERROR,
            )
        ]
    if policy.value == OUTDATED_ELASTICSEARCH_TLS_POLICY:
        return [
            check.new_result_with_value_annotation(
                f"Resource '{name}' defines an Elasticsearch domain with an outdated TLS policy "
                f"(set to {OUTDATED_ELASTICSEARCH_TLS_POLICY}).",
                policy.range,
                policy,
                Severity.ERROR,
            )
        ]
    return []


_PLAIN_HTTP_EXPLANATION = """
Plain HTTP is unencrypted and human-readable. This means that if a malicious actor was to eavesdrop on your connection, they would be able to see all of your data flowing back and forth.

You should use HTTPS, which is HTTP over an encrypted (TLS) connection, meaning eavesdroppers cannot read your traffic.
"""

register_check(
    Check(
        code=UNENCRYPTED_MSK_BROKER,
        documentation=CheckDocumentation(
            summary="A MSK cluster allows unencrypted data in transit.",
            explanation="""
Encryption should be forced for Kafka clusters, including for communication between nodes. This ensure sensitive data is kept private.
""",
            bad_example="""
resource "aws_msk_cluster" "msk-cluster" {
	encryption_info {
		encryption_in_transit {
			client_broker = "TLS_PLAINTEXT"
			in_cluster = true
		}
	}
}
""",
            good_example="""
resource "aws_msk_cluster" "msk-cluster" {
	encryption_info {
		encryption_in_transit {
			client_broker = "TLS"
			in_cluster = true
		}
	}
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_msk_broker,
        required_types=("resource",),
        required_labels=("aws_msk_cluster",),
    )
)

register_check(
    Check(
        code=UNENCRYPTED_ELASTICSEARCH_DOMAIN,
        documentation=CheckDocumentation(
            summary="Elasticsearch domain isn't encrypted at rest.",
            explanation="""
You should ensure your Elasticsearch data is encrypted at rest to help prevent sensitive information from being read by unauthorised users. 
""",
            bad_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  encrypt_at_rest {
    enabled = false
  }
}
""",
            good_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  encrypt_at_rest {
    enabled = true
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_elasticsearch_domain,
        required_types=("resource",),
        required_labels=("aws_elasticsearch_domain",),
    )
)

register_check(
    Check(
        code=PLAINTEXT_NODE_TO_NODE_TRAFFIC,
        documentation=CheckDocumentation(
            summary="Elasticsearch domain uses plaintext traffic for node to node communication.",
            explanation="""
Traffic flowing between Elasticsearch nodes should be encrypted to ensure sensitive data is kept private.
""",
            bad_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  node_to_node_encryption {
    enabled = false
  }
}
""",
            good_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  node_to_node_encryption {
    enabled = true
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_plaintext_node_to_node_traffic,
        required_types=("resource",),
        required_labels=("aws_elasticsearch_domain",),
    )
)

register_check(
    Check(
        code=UNENFORCED_HTTPS_ENDPOINT,
        documentation=CheckDocumentation(
            summary="Elasticsearch doesn't enforce HTTPS traffic.",
            explanation=_PLAIN_HTTP_EXPLANATION,
            bad_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  domain_endpoint_options {
    enforce_https = false
  }
}
""",
            good_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  domain_endpoint_options {
    enforce_https = true
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unenforced_https_endpoint,
        required_types=("resource",),
        required_labels=("aws_elasticsearch_domain",),
    )
)

register_check(
    Check(
        code=OUTDATED_TLS_POLICY_ENDPOINT,
        documentation=CheckDocumentation(
            summary="Elasticsearch domain endpoint is using outdated TLS policy.",
            explanation="""
You should not use outdated/insecure TLS versions for encryption. You should be using TLS v1.2+.
""",
            bad_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  domain_endpoint_options {
    enforce_https = true
    tls_security_policy = "Policy-Min-TLS-1-0-2019-07"
  }
}
""",
            good_example="""
resource "aws_elasticsearch_domain" "my_elasticsearch_domain" {
  domain_name = "domain-foo"

  domain_endpoint_options {
    enforce_https = true
    tls_security_policy = "Policy-Min-TLS-1-2-2019-07"
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_outdated_tls_policy_endpoint,
        required_types=("resource",),
        required_labels=("aws_elasticsearch_domain",),
    )
)