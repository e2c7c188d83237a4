import pytest

from tfguard import aws_encryption
from tfguard.model import Attribute, Block, Context, Range, Severity, get_registered_checks

REGISTRY = {c.code: c for c in get_registered_checks()}
SPAN = Range("main.tf", 1, 10)
ATTR_LINE = Range("main.tf", 2, 2)


def attr(name, value, line=2):
    return Attribute(name, value, Range("main.tf", line, line))


def node(kind, labels=(), attrs=(), children=(), first=1, last=10):
    return Block(
        kind,
        list(labels),
        {a.name: a for a in attrs},
        list(children),
        Range("main.tf", first, last),
    )


def resource(label, attrs=(), children=(), name="my-resource"):
    return node("resource", (label, name), attrs, children)


def device(kind, attrs=(), line=3):
    return node(kind, attrs=attrs, first=line, last=line + 2)


def run(code, target, *others):
    return REGISTRY[code].run(target, Context([*others, target]))


# AWS014


def test_launch_config_without_root_device_is_flagged():
    results = run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, resource("aws_launch_configuration"))
    assert [(r.rule_id, r.range, r.severity) for r in results] == [("AWS014", SPAN, Severity.ERROR)]
    assert "root_block_device{ encrypted = true }" in results[0].description


def test_root_device_without_encrypted_attribute_reports_device_range():
    root = device("root_block_device", line=4)
    results = run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, resource("aws_launch_configuration", children=[root]))
    assert [r.range for r in results] == [root.range]
    assert "Consider adding <blue>encrypted = true</blue>" in results[0].description


def test_root_device_explicitly_unencrypted_is_annotated():
    encrypted = attr("encrypted", False, line=5)
    target = resource("aws_launch_configuration", children=[device("root_block_device", [encrypted])])
    results = run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, target)
    assert [(r.range, r.range_annotation, r.description) for r in results] == [
        (
            encrypted.range,
            "false",
            "Resource 'aws_launch_configuration.my-resource' uses an unencrypted root EBS block device.",
        )
    ]


def test_encrypted_devices_pass():
    children = [
        device("root_block_device", [attr("encrypted", True)]),
        device("ebs_block_device", [attr("encrypted", True)], line=7),
    ]
    assert run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, resource("aws_launch_configuration", children=children)) == []


def test_each_unencrypted_ebs_device_is_reported():
    first = device("ebs_block_device", line=6)
    children = [
        device("root_block_device", [attr("encrypted", True)]),
        first,
        device("ebs_block_device", [attr("encrypted", False, line=10)], line=9),
    ]
    results = run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, resource("aws_launch_configuration", children=children))
    assert [r.range for r in results] == [first.range, Range("main.tf", 10, 10)]
    assert all("EBS block device" in r.description for r in results)


@pytest.mark.parametrize(
    "default_attrs,children,expected",
    [
        ([], [device("ebs_block_device")], 0),
        ([attr("enabled", True)], [device("ebs_block_device")], 0),
        ([], [device("root_block_device", [attr("encrypted", False)])], 1),
        ([attr("enabled", False)], [], 1),
    ],
)
def test_encryption_by_default(default_attrs, children, expected):
    default = resource("aws_ebs_encryption_by_default", default_attrs, name="default")
    target = resource("aws_launch_configuration", children=children)
    assert len(run(aws_encryption.UNENCRYPTED_BLOCK_DEVICE, target, default)) == expected


# AWS015, AWS016, AWS019, AWS024

SQS, SNS = aws_encryption.UNENCRYPTED_SQS_QUEUE, aws_encryption.UNENCRYPTED_SNS_TOPIC
KMS, KINESIS = aws_encryption.NO_KMS_AUTO_ROTATE, aws_encryption.UNENCRYPTED_KINESIS_STREAM

FLAGGED = [
    (SQS, "aws_sqs_queue", {}, Severity.ERROR, SPAN, ""),
    (SQS, "aws_sqs_queue", {"kms_master_key_id": ""}, Severity.ERROR, ATTR_LINE, '""'),
    (SNS, "aws_sns_topic", {}, Severity.ERROR, SPAN, ""),
    (SNS, "aws_sns_topic", {"kms_master_key_id": ""}, Severity.ERROR, ATTR_LINE, '""'),
    (KMS, "aws_kms_key", {}, Severity.WARNING, SPAN, ""),
    (KMS, "aws_kms_key", {"enable_key_rotation": False}, Severity.WARNING, ATTR_LINE, "false"),
    (KINESIS, "aws_kinesis_stream", {}, Severity.ERROR, SPAN, ""),
    (KINESIS, "aws_kinesis_stream", {"encryption_type": "NONE"}, Severity.ERROR, ATTR_LINE, '"NONE"'),
    (KINESIS, "aws_kinesis_stream", {"encryption_type": "kms"}, Severity.WARNING, SPAN, ""),
    (
        KINESIS,
        "aws_kinesis_stream",
        {"encryption_type": "kms", "kms_key_id": ""},
        Severity.WARNING,
        SPAN,
        "",
    ),
    (
        KINESIS,
        "aws_kinesis_stream",
        {"encryption_type": "kms", "kms_key_id": "alias/aws/kinesis"},
        Severity.WARNING,
        SPAN,
        "",
    ),
]


@pytest.mark.parametrize("code,label,attrs,severity,rng,annotation", FLAGGED)
def test_flagged(code, label, attrs, severity, rng, annotation):
    target = resource(label, [attr(k, v) for k, v in attrs.items()])
    results = run(code, target)
    assert [(r.rule_id, r.severity, r.range, r.range_annotation) for r in results] == [
        (code, severity, rng, annotation)
    ]


@pytest.mark.parametrize(
    "code,label,attrs",
    [
        (SQS, "aws_sqs_queue", {"kms_master_key_id": "/blah"}),
        (SNS, "aws_sns_topic", {"kms_master_key_id": "/blah"}),
        (SQS, "aws_sns_topic", {}),
        (KMS, "aws_kms_key", {"enable_key_rotation": True}),
        (KINESIS, "aws_kinesis_stream", {"encryption_type": "KMS", "kms_key_id": "my/special/key"}),
    ],
)
def test_passes(code, label, attrs):
    assert run(code, resource(label, [attr(k, v) for k, v in attrs.items()])) == []


@pytest.mark.parametrize(
    "code,label,attrs,text",
    [
        (SQS, "aws_sqs_queue", {}, "Resource 'aws_sqs_queue.my-resource' defines an unencrypted SQS queue."),
        (SNS, "aws_sns_topic", {}, "Resource 'aws_sns_topic.my-resource' defines an unencrypted SNS topic."),
        (
            KINESIS,
            "aws_kinesis_stream",
            {},
            "Resource 'aws_kinesis_stream.my-resource' defines an unencrypted Kinesis Stream.",
        ),
        (
            KINESIS,
            "aws_kinesis_stream",
            {"encryption_type": "KMS"},
            "Resource 'aws_kinesis_stream.my-resource' defines a Kinesis Stream encrypted with the default Kinesis key.",
        ),
    ],
)
def test_descriptions(code, label, attrs, text):
    results = run(code, resource(label, [attr(k, v) for k, v in attrs.items()]))
    assert [r.description for r in results] == [text]


def test_checks_are_registered_with_documentation():
    assert {"AWS014", "AWS015", "AWS016", "AWS019", "AWS024"} <= set(REGISTRY)
    assert REGISTRY["AWS024"].documentation.summary == "Kinesis stream is unencrypted."
    assert REGISTRY["AWS014"].required_labels == ("aws_launch_configuration",)