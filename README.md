# tfguard

tfguard holds a set of security checks for Terraform configurations that use
AWS resources. Each check looks at one configuration block and reports what
is insecure about it.

## What it checks

Every check has a code, a short summary, a longer explanation and insecure
and secure examples. A check only looks at the block types and resource
labels it names.

- `tfguard.aws_network`: EC2 Classic security groups (AWS003), plain HTTP
  load balancer listeners that do not redirect to HTTPS (AWS004), load
  balancers open to the internet (AWS005), outdated SSL policies (AWS010),
  publicly accessible databases (AWS011) and instances or launch
  configurations with public IP addresses (AWS012)
- `tfguard.aws_encryption`: unencrypted EBS block devices in launch
  configurations, taking `aws_ebs_encryption_by_default` into account
  (AWS014), SQS queues (AWS015) and SNS topics (AWS016) without a KMS key,
  KMS keys that do not rotate automatically (AWS019) and Kinesis streams
  that are unencrypted or use the default Kinesis key (AWS024)
- `tfguard.aws_services`: security groups and rules with no description
  (AWS018), CloudFront distributions that allow HTTP (AWS020) or old TLS
  versions (AWS021), ECR repositories that do not scan images on push
  (AWS023) and API Gateway domain names not using `TLS_1_2` (AWS025)
- `tfguard.aws_analytics`: MSK clusters that allow plaintext traffic
  (AWS022), and Elasticsearch domains that are not encrypted at rest
  (AWS031), send plaintext between nodes (AWS032), do not enforce HTTPS
  (AWS033) or use an outdated TLS policy (AWS034)

Each finding is a `Result`. It carries the check's code (`rule_id`), a
description, the source `Range` it points at, a `Severity` and, for findings
about one attribute, a `range_annotation` holding that attribute's value.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Using the checks from Python

The configuration model lives in `tfguard.model`. A `Block` has a type,
labels, attributes, nested blocks and a range, and exposes `get_attribute`,
`get_block`, `get_blocks` and `full_name`. A `Context` holds every block
being scanned and gives a check the other resources through
`get_resources_by_type`.

Importing a check module registers its checks; `get_registered_checks()`
returns them in registration order. `Check.run` applies a check to a block
when the block's type and first label match, and returns its findings:

```python
from tfguard import aws_network  # registers the network checks
from tfguard.model import Attribute, Block, Context, get_registered_checks

block = Block(
    type="resource",
    labels=["aws_db_instance", "my-db"],
    attributes={"publicly_accessible": Attribute("publicly_accessible", True)},
)
context = Context(blocks=[block])

for check in get_registered_checks():
    for result in check.run(block, context):
        print(result.rule_id, result.severity.value, result.description)
```

You can write your own check as a function that takes the `Check`, the
`Block` and the `Context`, wrap it in a `Check` and add it with
`register_check`; codes must be unique, and registering a code twice raises
`ValueError`. Such a function builds its findings with `Check.new_result`,
or with `Check.new_result_with_value_annotation` when the finding points at
one attribute.

## What it does not do

tfguard does not read Terraform files: it has no parser, so blocks must be
built as `Block` objects by the caller. It has no command-line scanner, no
output formats for reports and no documentation generator. It has no S3
bucket checks.