import uuid
from typing import Any, Dict

import boto3

from ...models.scan import Lead


class LeadStore:
    """Minimal DynamoDB-backed store for order leads.

    Table schema (provision this once):
      - TableName: configured via LEADS_TABLE
      - Partition key: lead_id (S)
    Item shape:
      {
        lead_id: str,
        dish_name: str,
        restaurant_name: str,
        restaurant_phone: str,
        timestamp: str (ISO-8601),
        user_email?: str,
        dish_image_url?: str
      }
    """

    def __init__(self, table_name: str, region: str, client=None) -> None:
        self._table_name = table_name
        self._client = client or boto3.client("dynamodb", region_name=region)

    @staticmethod
    def to_item(lead: Lead, lead_id: str) -> Dict[str, Any]:
        item = {"lead_id": {"S": lead_id}}
        for key, value in lead.to_dict().items():
            if value:
                item[key] = {"S": str(value)}
        return item

    def track_lead(self, lead: Lead) -> str:
        """Write one lead; errors propagate to the background runner, which logs them."""
        lead_id = uuid.uuid4().hex
        self._client.put_item(TableName=self._table_name, Item=self.to_item(lead, lead_id))
        return lead_id
