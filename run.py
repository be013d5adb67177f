#!/usr/bin/env python3

# Setup aws configuration the usual boto3 way, e.g.
# Create ~/.aws/credentials
#[default]
#aws_access_key_id = YOUR_ACCESS_KEY
#aws_secret_access_key = YOUR_SECRET_KEY
# and set REGION (plus the GIT_* / SCRIPT_PATH / LOCUST_WEB_PORT settings) in
# the environment or in a .env file next to where liac is run.
# https://boto3.amazonaws.com/v1/documentation/api/latest/guide/quickstart.html
from liac.cli import cli_main

if __name__ == '__main__':
    cli_main()
