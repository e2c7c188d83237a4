"""Checks for encryption at rest: block devices, queues, topics, KMS keys and streams."""

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

UNENCRYPTED_BLOCK_DEVICE = "AWS014"
UNENCRYPTED_SQS_QUEUE = "AWS015"
UNENCRYPTED_SNS_TOPIC = "AWS016"
NO_KMS_AUTO_ROTATE = "AWS019"
UNENCRYPTED_KINESIS_STREAM = "AWS024"

_DEFAULT_KINESIS_KEY = "alias/aws/kinesis"


def _is_bool(attr: Optional[Attribute], expected: bool) -> bool:
    return attr is not None and isinstance(attr.value, bool) and attr.value is expected


def _encryption_by_default(context: Context) -> bool:
    """Whether any EBS default-encryption resource is enabled."""
    return any(
        (enabled := resource.get_attribute("enabled")) is None or _is_bool(enabled, True)
        for resource in context.get_resources_by_type("aws_ebs_encryption_by_default")
    )


def _device_results(
    check: Check,
    name: str,
    device: Block,
    label: str,
    by_default: bool,
) -> list[Result]:
    encrypted = device.get_attribute("encrypted")
    if encrypted is None:
        if by_default:
            return []
        return [
            check.new_result(
                f"Resource '{name}' uses an unencrypted {label}. "
                "Consider adding <blue>encrypted = true</blue>",
                device.range,
                Severity.ERROR,
            )
        ]
    if _is_bool(encrypted, False):
        return [
            check.new_result_with_value_annotation(
                f"Resource '{name}' uses an unencrypted {label}.",
                encrypted.range,
                encrypted,
                Severity.ERROR,
            )
        ]
    return []


def check_unencrypted_block_device(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag launch configurations with root or EBS block devices left unencrypted."""
    name = block.full_name()
    by_default = _encryption_by_default(context)
    results: list[Result] = []

    root = block.get_block("root_block_device")
    if root is None:
        if not by_default:
            results.append(
                check.new_result(
                    f"Resource '{name}' uses an unencrypted root EBS block device. "
                    "Consider adding <blue>root_block_device{ encrypted = true }</blue>",
                    block.range,
                    Severity.ERROR,
                )
            )
    else:
        results.extend(_device_results(check, name, root, "root EBS block device", by_default))

    for device in block.get_blocks("ebs_block_device"):
        results.extend(_device_results(check, name, device, "EBS block device", by_default))

    return results


def _missing_kms_key(check: Check, block: Block, what: str) -> list[Result]:
    message = f"Resource '{block.full_name()}' defines an unencrypted {what}."
    key = block.get_attribute("kms_master_key_id")
    if key is None:
        return [check.new_result(message, block.range, Severity.ERROR)]
    if isinstance(key.value, str) and key.value == "":
        return [check.new_result_with_value_annotation(message, key.range, key, Severity.ERROR)]
    return []


def check_unencrypted_sqs_queue(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag SQS queues without a KMS master key."""
    return _missing_kms_key(check, block, "SQS queue")


def check_unencrypted_sns_topic(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag SNS topics without a KMS master key."""
    return _missing_kms_key(check, block, "SNS topic")


def check_no_kms_auto_rotate(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag KMS keys that do not enable automatic key rotation."""
    message = f"Resource '{block.full_name()}' does not have KMS Key auto-rotation enabled."
    rotation = block.get_attribute("enable_key_rotation")
    if rotation is None:
        return [check.new_result(message, block.range, Severity.WARNING)]
    if _is_bool(rotation, False):
        return [
            check.new_result_with_value_annotation(message, rotation.range, rotation, Severity.WARNING)
        ]
    return []


def check_unencrypted_kinesis_stream(check: Check, block: Block, context: Context) -> list[Result]:
    """Flag Kinesis streams that are unencrypted or use the default Kinesis key."""
    name = block.full_name()
    encryption_type = block.get_attribute("encryption_type")
    if encryption_type is None:
        return [
            check.new_result(
                f"Resource '{name}' defines an unencrypted Kinesis Stream.",
                block.range,
                Severity.ERROR,
            )
        ]
    if isinstance(encryption_type.value, str) and encryption_type.value.upper() != "KMS":
        return [
            check.new_result_with_value_annotation(
                f"Resource '{name}' defines an unencrypted Kinesis Stream.",
                encryption_type.range,
                encryption_type,
                Severity.ERROR,
            )
        ]
    key_id = block.get_attribute("kms_key_id")
    if key_id is None or key_id.value in ("", _DEFAULT_KINESIS_KEY):
        return [
            check.new_result(
                f"Resource '{name}' defines a Kinesis Stream encrypted with the default Kinesis key.",
                block.range,
                Severity.WARNING,
            )
        ]
    return []


_QUEUE_EXPLANATION = """
Queues should be encrypted with customer managed KMS keys and not default AWS managed keys, in order to allow granular control over access to specific queues.
"""

register_check(
    Check(
        code=UNENCRYPTED_BLOCK_DEVICE,
        documentation=CheckDocumentation(
            summary="Launch configuration with unencrypted block device.",
            explanation="""
Blocks devices should be encrypted to ensure sensitive data is hel securely at rest.
""",
            bad_example="""
resource "aws_launch_configuration" "my-launch-config" {
	root_block_device {
		encrypted = false
	}
}
""",
            good_example="""
resource "aws_launch_configuration" "my-launch-config" {
	root_block_device {
		encrypted = true
	}
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_block_device,
        required_types=("resource",),
        required_labels=("aws_launch_configuration",),
    )
)

register_check(
    Check(
        code=UNENCRYPTED_SQS_QUEUE,
        documentation=CheckDocumentation(
            summary="Unencrypted SQS queue.",
            explanation=_QUEUE_EXPLANATION,
            bad_example="""
resource "aws_sqs_queue" "my-queue" {
	# no key specified
}
""",
            good_example="""
resource "aws_sqs_queue" "my-queue" {
	kms_master_key_id = "/blah"
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_sqs_queue,
        required_types=("resource",),
        required_labels=("aws_sqs_queue",),
    )
)

register_check(
    Check(
        code=UNENCRYPTED_SNS_TOPIC,
        documentation=CheckDocumentation(
            summary="Unencrypted SNS topic.",
            explanation=_QUEUE_EXPLANATION,
            bad_example="""
resource "aws_sns_topic" "my-topic" {
	# no key id specified
}
""",
            good_example="""
resource "aws_sns_topic" "my-topic" {
	kms_master_key_id = "/blah"
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_sns_topic,
        required_types=("resource",),
        required_labels=("aws_sns_topic",),
    )
)

register_check(
    Check(
        code=NO_KMS_AUTO_ROTATE,
        documentation=CheckDocumentation(
            summary="A KMS key is not configured to auto-rotate.",
            explanation="""
You should configure your KMS keys to auto rotate to maintain security and defend against compromise.
""",
            bad_example="""
resource "aws_kms_key" "kms_key" {
	enable_key_rotation = false
}
""",
            good_example="""
resource "aws_kms_key" "kms_key" {
	enable_key_rotation = true
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_no_kms_auto_rotate,
        required_types=("resource",),
        required_labels=("aws_kms_key",),
    )
)

register_check(
    Check(
        code=UNENCRYPTED_KINESIS_STREAM,
        documentation=CheckDocumentation(
            summary="Kinesis stream is unencrypted.",
            explanation="""
Kinesis streams should be encrypted to ensure sensitive data is kept private. Additionally, non-default KMS keys should be used so granularity of access control can be ensured.
""",
            bad_example="""
resource "aws_kinesis_stream" "test_stream" {
	encryption_type = "NONE"
}
""",
            good_example="""
resource "aws_kinesis_stream" "test_stream" {
	encryption_type = "KMS"
	kms_key_id = "my/special/key"
}
""",
        ),
        provider=Provider.AWS,
        check_func=check_unencrypted_kinesis_stream,
        required_types=("resource",),
        required_labels=("aws_kinesis_stream",),
    )
)