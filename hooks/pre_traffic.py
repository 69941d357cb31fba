import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# Smoke tests that never reach Turnstile or SES
SMOKE_TESTS = (
    ('preflight', {'httpMethod': 'OPTIONS', 'headers': {}, 'body': None}, 204),
    ('method gate', {'httpMethod': 'GET', 'headers': {}, 'body': None}, 405),
)


def invoke_target(target_function, test_event):
    """Invoke the new function version synchronously and return its proxy response."""
    response = lambda_client.invoke(
        FunctionName=target_function,
        InvocationType='RequestResponse',
        Payload=json.dumps(test_event)
    )

    response_payload = json.loads(response['Payload'].read())
    logger.info(f"Test response: {json.dumps(response_payload)}")

    if response.get('FunctionError'):
        raise Exception(f"Function returned error: {response_payload}")

    if response.get('StatusCode') != 200:
        raise Exception(f"Unexpected status code: {response.get('StatusCode')}")

    return response_payload


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Runs smoke tests against the new version before shifting traffic to it.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise Exception("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Running smoke tests on {target_function}")

        for name, test_event, expected_status in SMOKE_TESTS:
            response_payload = invoke_target(target_function, test_event)
            status = response_payload.get('statusCode')
            if status != expected_status:
                raise Exception(f"Smoke test '{name}' expected {expected_status}, got {status}")
            if 'X-Handler-Rev' not in (response_payload.get('headers') or {}):
                raise Exception(f"Smoke test '{name}' response is missing the revision header")

        logger.info("Pre-traffic validation passed")

        # Report success
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Succeeded'
        )

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        codedeploy.put_lifecycle_event_hook_execution_status(
            deploymentId=deployment_id,
            lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
            status='Failed'
        )

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
