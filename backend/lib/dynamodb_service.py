"""
=============================================================================
DYNAMODB READING STORE - Meter readings kept in Amazon DynamoDB
=============================================================================
Drop-in replacement for MeterReadingStore (same get_readings /
store_readings / meter_ids contract), switched on with USE_DYNAMODB=true.

Table Schema:
-------------
Table: MeterReadings
- smart_meter_id (String) - Partition Key - Groups readings by meter
- sequence (String)       - Sort Key - "<time_ns>-<batch token>-<index>",
                            so a query returns readings in append order
- time (String)           - ISO-8601 timestamp of the reading
- reading (Number)        - kW value, stored as Decimal
- batch_size (Number)     - how many readings the batch was written with

Example Item:
{
    "smart_meter_id": "smart-meter-0",
    "sequence": "01714089610000000000-3f2a9c1e-000000",
    "time": "2024-04-26T00:00:10Z",
    "reading": 0.5034,
    "batch_size": 3
}

Differences from the in-memory store:
- An empty batch writes nothing, so an empty series reads back as absent.
- A batch is written with batch_writer, which flushes every 25 items.
  get_readings only returns batches whose items are all present, so a
  reader never sees part of a batch.
=============================================================================
"""

import logging
import os
import threading
import time
import uuid
from decimal import Decimal
from typing import Iterable, List, Optional

# boto3 - AWS SDK for Python
import boto3
from boto3.dynamodb.conditions import Key

# ClientError - Exception class for AWS API errors
from botocore.exceptions import ClientError

from backend.lib.smart_meter_core.io import format_time, parse_time
from backend.lib.smart_meter_core.models import ElectricityReading

logger = logging.getLogger(__name__)


class DynamoDBReadingStore:
    """
    Reading store backed by a DynamoDB table.

    Usage:
        store = DynamoDBReadingStore()
        store.create_table_if_not_exists()
        store.store_readings("smart-meter-0", readings)
    """

    def __init__(self, table_name: str = None, table=None):
        """
        Args:
            table_name: Optional custom table name. If not provided,
                        uses DYNAMODB_TABLE_NAME from environment or default.
            table: An already constructed boto3 Table (tests pass a stub here).
        """
        self.table_name = table_name or os.getenv('DYNAMODB_TABLE_NAME', 'MeterReadings')
        self.region = os.getenv('AWS_REGION', 'us-east-1')
        self.table = table
        self._last_stamp = 0
        self._stamp_lock = threading.Lock()
        self.dynamodb = None
        self.client = None

        if table is None:
            session_token = os.getenv('AWS_SESSION_TOKEN')
            credentials = dict(
                region_name=self.region,
                aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
                aws_session_token=session_token if session_token else None
            )
            # Resource for Table objects, client for describe_table
            self.dynamodb = boto3.resource('dynamodb', **credentials)
            self.client = boto3.client('dynamodb', **credentials)
            self.table = self.dynamodb.Table(self.table_name)

    def create_table_if_not_exists(self) -> None:
        try:
            self.client.describe_table(TableName=self.table_name)
            logger.info("DynamoDB table '%s' exists", self.table_name)
            return
        except ClientError as e:
            if e.response['Error']['Code'] != 'ResourceNotFoundException':
                logger.error("Error checking table %s: %s", self.table_name, e)
                raise

        table = self.dynamodb.create_table(
            TableName=self.table_name,
            KeySchema=[
                {'AttributeName': 'smart_meter_id', 'KeyType': 'HASH'},  # Partition key
                {'AttributeName': 'sequence', 'KeyType': 'RANGE'}  # Sort key
            ],
            AttributeDefinitions=[
                {'AttributeName': 'smart_meter_id', 'AttributeType': 'S'},
                {'AttributeName': 'sequence', 'AttributeType': 'S'}
            ],
            BillingMode='PAY_PER_REQUEST'
        )
        table.wait_until_exists()
        self.table = table
        logger.info("Created DynamoDB table '%s'", self.table_name)

    def _next_stamp(self) -> int:
        # strictly increasing within this process, even if the clock repeats itself
        with self._stamp_lock:
            self._last_stamp = max(time.time_ns(), self._last_stamp + 1)
            return self._last_stamp

    def store_readings(self, smart_meter_id: str, readings: Iterable[ElectricityReading]) -> None:
        # One token per batch keeps the batch contiguous under the sort key.
        prefix = f"{self._next_stamp():020d}-{uuid.uuid4().hex[:8]}"
        batch = list(readings)
        try:
            with self.table.batch_writer() as writer:
                for i, reading in enumerate(batch):
                    writer.put_item(Item={
                        'smart_meter_id': smart_meter_id,
                        'sequence': f"{prefix}-{i:06d}",
                        'time': format_time(reading.time),
                        'reading': reading.reading,
                        'batch_size': len(batch)
                    })
        except ClientError as e:
            logger.error("Batch write for %s failed: %s", smart_meter_id, e)
            raise
        logger.info("Stored %d readings for %s in %s", len(batch), smart_meter_id, self.table_name)

    def get_readings(self, smart_meter_id: str) -> Optional[List[ElectricityReading]]:
        items = []
        query = dict(KeyConditionExpression=Key('smart_meter_id').eq(smart_meter_id), ConsistentRead=True)
        try:
            response = self.table.query(**query)
            items.extend(response.get('Items', []))

            # DynamoDB returns max 1MB of data per query
            while 'LastEvaluatedKey' in response:
                response = self.table.query(ExclusiveStartKey=response['LastEvaluatedKey'], **query)
                items.extend(response.get('Items', []))
        except ClientError as e:
            logger.error("Failed to get readings for %s: %s", smart_meter_id, e)
            raise

        items = self._complete_batches(items)
        if not items:
            return None
        return [
            ElectricityReading(time=parse_time(item['time']), reading=Decimal(str(item['reading'])))
            for item in items
        ]

    @staticmethod
    def _complete_batches(items: List[dict]) -> List[dict]:
        """
        batch_writer flushes every 25 items, so a query can land in the middle
        of a batch. Items of a batch that is not fully written yet are left out.
        """
        counts = {}
        for item in items:
            batch = item['sequence'].rsplit('-', 1)[0]
            counts[batch] = counts.get(batch, 0) + 1
        return [
            item for item in items
            if counts[item['sequence'].rsplit('-', 1)[0]] >= int(item.get('batch_size', 0))
        ]

    def meter_ids(self) -> List[str]:
        """Scans the whole table; fine for a demo, expensive for a large one."""
        devices = set()
        scan = dict(ProjectionExpression='smart_meter_id')
        try:
            response = self.table.scan(**scan)
            devices.update(item['smart_meter_id'] for item in response.get('Items', []))
            while 'LastEvaluatedKey' in response:
                response = self.table.scan(ExclusiveStartKey=response['LastEvaluatedKey'], **scan)
                devices.update(item['smart_meter_id'] for item in response.get('Items', []))
        except ClientError as e:
            logger.error("Failed to list meters: %s", e)
            raise
        return sorted(devices)
