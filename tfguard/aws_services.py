"""Checks for security group descriptions, CloudFront, ECR and API Gateway settings."""

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

NO_DESCRIPTION_IN_SECURITY_GROUP = "AWS018"
UNENCRYPTED_CLOUDFRONT_COMMUNICATIONS = "AWS020"
CLOUDFRONT_OUTDATED_PROTOCOL = "AWS021"
ECR_IMAGE_SCAN_NOT_ENABLED = "AWS023"
API_GATEWAY_OUTDATED_SECURITY_POLICY = "AWS025"

CLOUDFRONT_MINIMUM_PROTOCOL = "TLSv1.2_2019"
API_GATEWAY_SECURITY_POLICY = "TLS_1_2"


def _is_string(attr: Optional[Attribute]) -> bool:
    return attr is not None and isinstance(attr.value, str)


def check_no_description_in_security_group(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag security groups and rules without a non-empty description."""
    description = block.get_attribute("description")
    if description is None:
        return [
            check.new_result(
                f"Resource '{block.full_name()}' should include a description for auditing purposes.",
                block.range,
                Severity.ERROR,
            )
        ]
    if _is_string(description) and description.value == "":
        return [
            check.new_result_with_value_annotation(
                f"Resource '{block.full_name()}' should include a non-empty description for auditing purposes.",
                description.range,
                description,
                Severity.ERROR,
            )
        ]
    return []


def _behaviour_results(check: Check, block: Block, behaviour: Block) -> list[Result]:
    name = block.full_name()
    policy = behaviour.get_attribute("viewer_protocol_policy")
    if policy is None:
        return [
            check.new_result(
                f"Resource '{name}' defines a CloudFront distribution that allows unencrypted "
                "communications (missing viewer_protocol_policy block).",
                block.range,
                Severity.ERROR,
            )
        ]
    if _is_string(policy) and policy.value == "allow-all":
        return [
            check.new_result_with_value_annotation(
                f"Resource '{name}' defines a CloudFront distribution that allows unencrypted communications.",
                policy.range,
                policy,
                Severity.ERROR,
            )
        ]
    return []


def check_unencrypted_cloudfront_communications(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag CloudFront cache behaviours that allow plain HTTP viewers."""
    results: list[Result] = []
    default = block.get_block("default_cache_behavior")
    if default is None:
        results.append(
            check.new_result(
                f"Resource '{block.full_name()}' defines a CloudFront distribution that allows unencrypted "
                "communications (missing default_cache_behavior block).",
                block.range,
                Severity.ERROR,
            )
        )
    else:
        results.extend(_behaviour_results(check, block, default))

    for ordered in block.get_blocks("ordered_cache_behavior"):
        results.extend(_behaviour_results(check, block, ordered))
    return results


def check_cloudfront_outdated_protocol(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag CloudFront distributions whose minimum protocol is not TLSv1.2_2019."""
    name = block.full_name()
    certificate = block.get_block("viewer_certificate")
    if certificate is None:
        return [
            check.new_result(
                f"Resource '{name}' defines outdated SSL/TLS policies (missing viewer_certificate block)",
                block.range,
                Severity.ERROR,
            )
        ]
    min_version = certificate.get_attribute("minimum_protocol_version")
    if min_version is None:
        return [
            check.new_result(
                f"Resource '{name}' defines outdated SSL/TLS policies "
                "(missing minimum_protocol_version attribute)",
                certificate.range,
                Severity.ERROR,
            )
        ]
    if _is_string(min_version) and min_version.value != CLOUDFRONT_MINIMUM_PROTOCOL:
        return [
            check.new_result(
                f"Resource '{name}' defines outdated SSL/TLS policies (not using TLSv1.2_2019)",
                min_version.range,
                Severity.ERROR,
            )
        ]
    return []


def check_ecr_image_scan_not_enabled(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag ECR repositories that do not scan images on push."""
    message = f"Resource '{block.full_name()}' defines a disabled ECR image scan."
    scanning = block.get_block("image_scanning_configuration")
    scan_on_push = scanning.get_attribute("scan_on_push") if scanning is not None else None
    if scan_on_push is None:
        return [check.new_result(message, block.range, Severity.ERROR)]
    if isinstance(scan_on_push.value, bool) and not scan_on_push.value:
        return [
            check.new_result_with_value_annotation(message, scan_on_push.range, scan_on_push, Severity.ERROR)
        ]
    return []


def check_api_gateway_outdated_security_policy(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag API Gateway domain names that do not use the TLS_1_2 security policy."""
    policy = block.get_attribute("security_policy")
    if policy is None:
        return [
            check.new_result(
                f"Resource '{block.full_name()}' should include security_policy "
                "(defauls to outdated SSL/TLS policy).",
                block.range,
                Severity.ERROR,
            )
        ]
    if _is_string(policy) and policy.value != API_GATEWAY_SECURITY_POLICY:
        return [
            check.new_result_with_value_annotation(
                f"Resource '{block.full_name()}' defines outdated SSL/TLS policies (not using TLS_1_2).",
                policy.range,
                policy,
                Severity.ERROR,
            )
        ]
    return []


register_check(
    Check(
        code=NO_DESCRIPTION_IN_SECURITY_GROUP,
        documentation=CheckDocumentation(
            summary="Missing description for security group/security group rule.",
            explanation="""
Security groups and security group rules should include a description for auditing purposes.

Simplifies auditing, debugging, and managing security groups.
""",
            bad_example="""
resource "aws_security_group" "http" {
  name        = "http"

  ingress {
    description = "HTTP from VPC"
    from_port   = 80
    to_port     = 80
    protocol    = "tcp"
    cidr_blocks = [aws_vpc.main.cidr_block]
  }
}
""",
            good_example="""
resource "aws_security_group" "http" {
  name        = "http"
  description = "Allow inbound HTTP traffic"

  ingress {
    description = "HTTP from VPC"
    from_port   = 80
    to_port     = 80
    protocol    = "tcp"
    cidr_blocks = [aws_vpc.main.cidr_block]
  }
}
""",
            links=(
                "https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/security_group",
                "https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/security_group_rule",
                "https://www.cloudconformity.com/knowledge-base/aws/EC2/security-group-rules-description.html",
            ),
        ),
        provider=Provider.AWS,
        check_func=check_no_description_in_security_group,
        required_types=("resource",),
        required_labels=("aws_security_group", "aws_security_group_rule"),
    )
)

register_check(
    Check(
        code=UNENCRYPTED_CLOUDFRONT_COMMUNICATIONS,
        documentation=CheckDocumentation(
            summary="CloudFront distribution allows unencrypted (HTTP) communications.",
            explanation="""
Plain HTTP is unencrypted and human-readable. This means that if a malicious actor was to eavesdrop on your connection, they would be able to see all of your data flowing back and forth.

You should use HTTPS, which is HTTP over an encrypted (TLS) connection, meaning eavesdroppers cannot read your traffic.
""",
            bad_example="""
resource "aws_cloudfront_distribution" "s3_distribution" {
	default_cache_behavior {
	    viewer_protocol_policy = "allow-all"
	  }
}
""",
            good_example="""
resource "aws_cloudfront_distribution" "s3_distribution" {
	default_cache_behavior {
	    viewer_protocol_policy = "redirect-to-https"
	  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_cloudfront_communications,
        required_types=("resource",),
        required_labels=("aws_cloudfront_distribution",),
    )
)

register_check(
    Check(
        code=CLOUDFRONT_OUTDATED_PROTOCOL,
        documentation=CheckDocumentation(
            summary="CloudFront distribution uses outdated SSL/TLS protocols.",
            explanation="""
You should not use outdated/insecure TLS versions for encryption. You should be using TLS v1.2+.
""",
            bad_example="""
resource "aws_cloudfront_distribution" "s3_distribution" {
  viewer_certificate {
    cloudfront_default_certificate = true
	minimum_protocol_version = "TLSv1.0"
  }
}
""",
            good_example="""
resource "aws_cloudfront_distribution" "s3_distribution" {
  viewer_certificate {
    cloudfront_default_certificate = true
	minimum_protocol_version = "TLSv1.2_2019"
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_cloudfront_outdated_protocol,
        required_types=("resource",),
        required_labels=("aws_cloudfront_distribution",),
    )
)

register_check(
    Check(
        code=ECR_IMAGE_SCAN_NOT_ENABLED,
        documentation=CheckDocumentation(
            summary="ECR repository has image scans disabled.",
            explanation="""
Repository image scans should be enabled to ensure vulnerable software can be discovered and remediated as soon as possible.
""",
            bad_example="""
resource "aws_ecr_repository" "foo" {
  name                 = "bar"
  image_tag_mutability = "MUTABLE"

  image_scanning_configuration {
    scan_on_push = false
  }
}
""",
            good_example="""
resource "aws_ecr_repository" "foo" {
  name                 = "bar"
  image_tag_mutability = "MUTABLE"

  image_scanning_configuration {
    scan_on_push = true
  }
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_ecr_image_scan_not_enabled,
        required_types=("resource",),
        required_labels=("aws_ecr_repository",),
    )
)

register_check(
    Check(
        code=API_GATEWAY_OUTDATED_SECURITY_POLICY,
        documentation=CheckDocumentation(
            summary="API Gateway domain name uses outdated SSL/TLS protocols.",
            explanation="""
You should not use outdated/insecure TLS versions for encryption. You should be using TLS v1.2+.
""",
            bad_example="""
resource "aws_api_gateway_domain_name" "my-resource" {
	security_policy = "TLS_1_0"
}
""",
            good_example="""
resource "aws_api_gateway_domain_name" "my-resource" {
	security_policy = "TLS_1_2"
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_api_gateway_outdated_security_policy,
        required_types=("resource",),
        required_labels=("aws_api_gateway_domain_name",),
    )
)