"""flow log formats, the central log sink and the rules pointing at it"""

from dataclasses import dataclass
from enum import Enum

V2_FIELDS = (
    "version",
    "account-id",
    "interface-id",
    "srcaddr",
    "dstaddr",
    "srcport",
    "dstport",
    "protocol",
    "packets",
    "bytes",
    "start",
    "end",
    "action",
    "log-status",
)
V3_FIELDS = V2_FIELDS + (
    "vpc-id",
    "subnet-id",
    "instance-id",
    "tcp-flags",
    "type",
    "pkt-srcaddr",
    "pkt-dstaddr",
)
V4_FIELDS = V3_FIELDS + ("region", "az-id", "sublocation-type", "sublocation-id")
V5_FIELDS = V4_FIELDS + (
    "pkt-src-aws-service",
    "pkt-dst-aws-service",
    "flow-direction",
    "traffic-path",
)


class FlowLogFormat(Enum):
    """flow log record schema, each version extends the previous one"""

    V2 = "v2"
    V3 = "v3"
    V4 = "v4"
    V5 = "v5"

    @property
    def fields(self) -> tuple[str, ...]:
        return {
            FlowLogFormat.V2: V2_FIELDS,
            FlowLogFormat.V3: V3_FIELDS,
            FlowLogFormat.V4: V4_FIELDS,
            FlowLogFormat.V5: V5_FIELDS,
        }[self]

    @property
    def template(self) -> str:
        """the log format string, e.g. "${version} ${account-id} ..." """
        return " ".join(f"${{{f}}}" for f in self.fields)


@dataclass(frozen=True)
class LogSink:
    """central destination all flow logs are delivered to"""

    name: str
    format: FlowLogFormat = FlowLogFormat.V5

    @property
    def arn(self) -> str:
        return f"arn:aws:s3:::{self.name}"


@dataclass(frozen=True)
class LogRule:
    """route flow logs of a network to a sink using a record format"""

    destination: LogSink
    format: FlowLogFormat


DEFAULT_RULE_NAME = "flow-log-default"


def default_flow_logs(sink: LogSink, log_format: FlowLogFormat) -> dict[str, LogRule]:
    return {DEFAULT_RULE_NAME: LogRule(destination=sink, format=log_format)}
