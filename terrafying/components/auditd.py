from typing import Any

from terrafying.utils.template import render

CONF_DIR = "/etc/fluentd/conf.d"
CONF_MODE = 0o644

DEFAULT_BUCKET = "uswitch-auditd-logs"
DEFAULT_REGION = "eu-west-1"
JOURNAL_PATH = "/fluentd/log/journal"
METADATA_REFRESH_SECONDS = 300
# 5 minute partitions
S3_TIMEKEY = 300


class Auditd:
    """
    fluentd configuration shipping auditd records from the systemd journal to
    S3, tagged with the EC2 instance metadata.
    """

    def __init__(self, bucket: str = DEFAULT_BUCKET, region: str = DEFAULT_REGION):
        self.bucket = bucket
        self.region = region

    @classmethod
    def fluentd_conf(cls, audit_role: str, **kwargs: Any) -> dict[str, Any]:
        return cls(**kwargs).files(audit_role)

    def files(self, audit_role: str) -> dict[str, Any]:
        return {
            "files": [
                self.systemd_input(),
                self.ec2_filter(),
                self.s3_output(audit_role),
            ]
        }

    @staticmethod
    def file_of(name: str, content: str) -> dict[str, Any]:
        return {
            "path": f"{CONF_DIR}/{name}.conf",
            "mode": CONF_MODE,
            "contents": content,
        }

    def _render(self, name: str, **variables: Any) -> dict[str, Any]:
        return self.file_of(name, render(f"auditd/{name}.conf.j2", **variables))

    def systemd_input(self) -> dict[str, Any]:
        return self._render("10_auditd_input_systemd", journal_path=JOURNAL_PATH)

    def ec2_filter(self) -> dict[str, Any]:
        return self._render(
            "20_auditd_filter_ec2", metadata_refresh_seconds=METADATA_REFRESH_SECONDS
        )

    def s3_output(self, audit_role: str) -> dict[str, Any]:
        return self._render(
            "30_auditd_output_s3",
            audit_role=audit_role,
            bucket=self.bucket,
            region=self.region,
            timekey=S3_TIMEKEY,
        )
