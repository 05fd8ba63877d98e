"""Route 53 record publication for the ingress hostname."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..errors import map_client_error
from ..shared.logging import get_logger

logger = get_logger(__name__)

RECORD_TYPE = "CNAME"
RECORD_TTL = 300
CHANGE_COMMENT = "CREATE/DELETE/UPSERT a record"


@dataclass(frozen=True)
class ChangeStatus:
    """Route 53 change info, as reported by the API."""

    status: str
    change_id: str


class DNSPublisher:
    """Upsert CNAME records in a hosted zone."""

    def __init__(self, client: Any):
        """Initialize publisher.

        Args:
            client: boto3 route53 client.
        """
        self.client = client

    def publish(self, name: str, zone_id: str, hostname: str) -> ChangeStatus:
        """Point name at hostname.

        Raises:
            CloudAPIError: If the change request fails.
        """
        logger.info("Creating DNS record", name=name, hosted_zone=zone_id, target=hostname)
        try:
            response = self.client.change_resource_record_sets(
                HostedZoneId=zone_id,
                ChangeBatch={
                    "Comment": CHANGE_COMMENT,
                    "Changes": [
                        {
                            "Action": "UPSERT",
                            "ResourceRecordSet": {
                                "Name": name,
                                "Type": RECORD_TYPE,
                                "TTL": RECORD_TTL,
                                "ResourceRecords": [{"Value": hostname}],
                            },
                        }
                    ],
                },
            )
        except (BotoCoreError, ClientError) as exc:
            raise map_client_error(exc, "route53", "ChangeResourceRecordSets") from exc

        info = response["ChangeInfo"]
        change = ChangeStatus(status=info["Status"], change_id=info["Id"])
        logger.info("DNS change submitted", status=change.status, change_id=change.change_id)
        return change
