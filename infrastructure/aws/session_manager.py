"""AWS session manager"""

import os
import boto3
from typing import Dict, Optional
from datetime import datetime

from core.models.config import RunMode
from core.utils.logger import get_infrastructure_logger


class AWSSessionManager:
    """Builds boto3 sessions for local and pipeline runs."""

    _sessions: Dict[str, boto3.Session] = {}

    def __init__(self, region: str = "ap-southeast-2"):
        self.region = region
        self.logger = get_infrastructure_logger("aws.session_manager")

    def get_session(
        self,
        account_id: Optional[str] = None,
        role_name: Optional[str] = None,
        session_duration: int = 3600,
        run_mode: RunMode = RunMode.LOCAL,
    ) -> boto3.Session:
        """Get an AWS session for different execution modes."""
        # Pipeline execution: credentials come from the environment
        if run_mode == RunMode.PIPELINE:
            self.logger.info("Using pipeline mode with environment credentials")
            return self.get_session_from_env(region=self.region)

        # Local execution: assume the build role when one is configured
        if not account_id or not role_name:
            self.logger.debug("No account_id or role_name provided, using default session")
            return boto3.Session(region_name=self.region)

        return self._assume_role_session(account_id, role_name, session_duration)

    def _assume_role_session(
        self, account_id: str, role_name: str, session_duration: int = 3600
    ) -> boto3.Session:
        """Assume a cross-account role and return session."""
        if not account_id.isdigit() or len(account_id) != 12:
            raise ValueError(f"Invalid AWS account ID: {account_id}")

        role_arn = f"arn:aws:iam::{account_id}:role/{role_name}"
        try:
            sts_client = boto3.client("sts", region_name=self.region)

            response = sts_client.assume_role(
                RoleArn=role_arn,
                RoleSessionName=f"instance-info-{datetime.utcnow().strftime('%Y%m%d-%H%M%S')}",
                DurationSeconds=session_duration,
            )

            credentials = response["Credentials"]

            assumed_session = boto3.Session(
                aws_access_key_id=credentials["AccessKeyId"],
                aws_secret_access_key=credentials["SecretAccessKey"],
                aws_session_token=credentials["SessionToken"],
                region_name=self.region,
            )

            self.logger.info(f"Successfully assumed role {role_arn}")
            return assumed_session

        except Exception as e:
            self.logger.error(f"Failed to assume role {role_arn}: {str(e)}")
            raise RuntimeError(f"Role assumption failed: {str(e)}") from e

    @classmethod
    def get_session_from_env(
        cls, region: str = "ap-southeast-2", session_name: str = "pipeline"
    ) -> boto3.Session:
        """Create a boto3 Session from environment variables for pipeline usage.

        Expected environment variables:
        - AWS_ACCESS_KEY_ID
        - AWS_SECRET_ACCESS_KEY
        - AWS_SESSION_TOKEN (optional)
        """
        session_key = f"env:{region}:{session_name}"

        if session_key not in cls._sessions:
            access_key = os.getenv("AWS_ACCESS_KEY_ID")
            secret_key = os.getenv("AWS_SECRET_ACCESS_KEY")
            session_token = os.getenv("AWS_SESSION_TOKEN")

            if not access_key or not secret_key:
                raise ValueError(
                    "Missing required environment variables. "
                    "Please set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY"
                )

            cls._sessions[session_key] = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                aws_session_token=session_token,
                region_name=region,
            )

        return cls._sessions[session_key]
