"""Checks for network exposure: classic resources, plain HTTP, public endpoints and TLS policies."""

from __future__ import annotations

from .model import (
    Block,
    Check,
    CheckDocumentation,
    Context,
    Provider,
    Result,
    Severity,
    register_check,
)

CLASSIC_USAGE = "AWS003"
PLAIN_HTTP = "AWS004"
EXTERNALLY_EXPOSED_LOAD_BALANCER = "AWS005"
OUTDATED_SSL_POLICY = "AWS010"
PUBLICLY_ACCESSIBLE_RESOURCE = "AWS011"
RESOURCE_HAS_PUBLIC_IP = "AWS012"

OUTDATED_SSL_POLICIES = (
    "ELBSecurityPolicy-2015-05",
    "ELBSecurityPolicy-TLS-1-0-2015-04",
    "ELBSecurityPolicy-2016-08",
    "ELBSecurityPolicy-TLS-1-1-2017-01",
)


def _is_string(attr, expected: str) -> bool:
    return attr is not None and isinstance(attr.value, str) and attr.value == expected


def check_classic_usage(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag every resource that belongs to EC2 Classic."""
    return [
        check.new_result(
            f"Resource '{block.full_name()}' uses EC2 Classic. Use a VPC instead.",
            block.range,
            Severity.ERROR,
        )
    ]


def _redirects_to_https(block: Block) -> bool:
    action = block.get_block("default_action")
    if action is None or not _is_string(action.get_attribute("type"), "redirect"):
        return False
    redirect = action.get_block("redirect")
    return redirect is not None and _is_string(redirect.get_attribute("protocol"), "HTTPS")


def check_plain_http(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag listeners using plain HTTP unless they redirect to HTTPS."""
    protocol = block.get_attribute("protocol")
    if protocol is not None and not _is_string(protocol, "HTTP"):
        return []
    if _redirects_to_https(block):
        return []
    report_range = protocol.range if protocol is not None else block.range
    return [
        check.new_result_with_value_annotation(
            f"Resource '{block.full_name()}' uses plain HTTP instead of HTTPS.",
            report_range,
            protocol,
            Severity.ERROR,
        )
    ]


def check_externally_exposed_load_balancer(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag load balancers that are not marked internal."""
    internal = block.get_attribute("internal")
    message = f"Resource '{block.full_name()}' is exposed publicly."
    if internal is None:
        return [check.new_result(message, block.range, Severity.WARNING)]
    if isinstance(internal.value, bool) and not internal.value:
        return [
            check.new_result_with_value_annotation(message, internal.range, internal, Severity.WARNING)
        ]
    return []


def check_outdated_ssl_policy(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag listeners configured with an outdated SSL policy."""
    policy = block.get_attribute("ssl_policy")
    if policy is not None and isinstance(policy.value, str) and policy.value in OUTDATED_SSL_POLICIES:
        return [
            check.new_result_with_value_annotation(
                f"Resource '{block.full_name()}' is using an outdated SSL policy.",
                policy.range,
                policy,
                Severity.ERROR,
            )
        ]
    return []


def check_publicly_accessible_resource(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag database resources with publicly_accessible set to true."""
    public = block.get_attribute("publicly_accessible")
    if public is not None and isinstance(public.value, bool) and public.value:
        return [
            check.new_result_with_value_annotation(
                f"Resource '{block.full_name()}' is exposed publicly.",
                public.range,
                public,
                Severity.WARNING,
            )
        ]
    return []


def check_resource_has_public_ip(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag instances and launch configurations that associate a public IP."""
    public = block.get_attribute("associate_public_ip_address")
    if public is not None and isinstance(public.value, bool) and public.value:
        return [
            check.new_result_with_value_annotation(
                f"Resource '{block.full_name()}' has a public IP address associated.",
                public.range,
                public,
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
        code=CLASSIC_USAGE,
        documentation=CheckDocumentation(
            summary="AWS Classic resource usage.",
            explanation="""
AWS Classic resources run in a shared environment with infrastructure owned by other AWS customers. You should run
resources in a VPC instead.
""",
            bad_example="""
resource "aws_db_security_group" "my-group" {
  # ...
}
""",
            good_example="""
resource "aws_security_group" "allow-db-access" {
  # ...
}
""",
            links=("https://docs.aws.amazon.com/AWSEC2/latest/UserGuide/ec2-classic-platform.html",),
        ),
        provider=Provider.AWS,
        check_func=check_classic_usage,
        required_types=("resource",),
        required_labels=(
            "aws_db_security_group",
            "aws_redshift_security_group",
            "aws_elasticache_security_group",
        ),
    )
)

register_check(
    Check(
        code=PLAIN_HTTP,
        documentation=CheckDocumentation(
            summary="Use of plain HTTP.",
            explanation=_PLAIN_HTTP_EXPLANATION,
            bad_example="""
resource "aws_alb_listener" "my-listener" {
	protocol = "HTTP"
}
""",
            good_example="""
resource "aws_alb_listener" "my-listener" {
	protocol = "HTTPS"
}
""",
            links=(
                "https://www.cloudflare.com/en-gb/learning/ssl/why-is-http-not-secure/",
                "https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/lb_listener",
            ),
        ),
        provider=Provider.AWS,
        check_func=check_plain_http,
        required_types=("resource",),
        required_labels=("aws_lb_listener", "aws_alb_listener"),
    )
)

register_check(
    Check(
        code=EXTERNALLY_EXPOSED_LOAD_BALANCER,
        documentation=CheckDocumentation(
            summary="Load balancer is exposed to the internet.",
            explanation="""
There are many scenarios in which you would want to expose a load balancer to the wider internet, but this check exists as a warning to prevent accidental exposure of internal assets. You should ensure that this resource should be exposed publicly.
""",
            bad_example="""
resource "aws_alb" "my-resource" {
	internal = false
}
""",
            good_example="""
resource "aws_alb" "my-resource" {
	internal = true
}
""",
            links=("https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/lb",),
        ),
        provider=Provider.AWS,
        check_func=check_externally_exposed_load_balancer,
        required_types=("resource",),
        required_labels=("aws_alb", "aws_elb", "aws_lb"),
    )
)

register_check(
    Check(
        code=OUTDATED_SSL_POLICY,
        documentation=CheckDocumentation(
            summary="An outdated SSL policy is in use by a load balancer.",
            explanation="""
You should not use outdated/insecure TLS versions for encryption. You should be using TLS v1.2+. 
""",
            bad_example="""
resource "aws_alb_listener" "my-resource" {
	ssl_policy = "ELBSecurityPolicy-TLS-1-1-2017-01"
	protocol = "HTTPS"
}
""",
            good_example="""
resource "aws_alb_listener" "my-resource" {
	ssl_policy = "ELBSecurityPolicy-TLS-1-2-2017-01"
	protocol = "HTTPS"
}
""",
            links=("https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/lb_listener",),
        ),
        provider=Provider.AWS,
        check_func=check_outdated_ssl_policy,
        required_types=("resource",),
        required_labels=("aws_lb_listener", "aws_alb_listener"),
    )
)

register_check(
    Check(
        code=PUBLICLY_ACCESSIBLE_RESOURCE,
        documentation=CheckDocumentation(
            summary="A resource is marked as publicly accessible.",
            explanation="""
Database resources should not publicly available. You should limit all access to the minimum that is required for your application to function. 
""",
            bad_example="""
resource "aws_db_instance" "my-resource" {
	publicly_accessible = true
}
""",
            good_example="""
resource "aws_db_instance" "my-resource" {
	publicly_accessible = false
}
""",
            links=("https://registry.terraform.io/providers/hashicorp/aws/latest/docs/resources/db_instance",),
        ),
        provider=Provider.AWS,
        check_func=check_publicly_accessible_resource,
        required_types=("resource",),
        required_labels=(
            "aws_db_instance",
            "aws_dms_replication_instance",
            "aws_rds_cluster_instance",
            "aws_redshift_cluster",
        ),
    )
)

register_check(
    Check(
        code=RESOURCE_HAS_PUBLIC_IP,
        documentation=CheckDocumentation(
            summary="A resource has a public IP address.",
            explanation="""
You should limit the provision of public IP addresses for resources. Resources should not be exposed on the public internet, but should have access limited to consumers required for the function of your application. 
""",
            bad_example="""
resource "aws_launch_configuration" "my-resource" {
	associate_public_ip_address = true
}
""",
            good_example="""
resource "aws_launch_configuration" "my-resource" {
	associate_public_ip_address = false
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_resource_has_public_ip,
        required_types=("resource",),
        required_labels=("aws_launch_configuration", "aws_instance"),
    )
)