import logging
import time

from bmcfish.redfish.constants import TaskState
from bmcfish.redfish.errors import TaskTimeoutError

logger = logging.getLogger(__name__)

TASK_TIMEOUT = 600
TASK_POLL_INTERVAL = 3


def wait_for_task(api, task_uri: str, timeout: float = TASK_TIMEOUT, interval: float = TASK_POLL_INTERVAL,
                  clock=time.monotonic, sleep=time.sleep) -> bool:
    """Poll a task resource until it reaches a terminal state.

    Fetch errors are not retried; they abort the wait as raised.

    Args:
        api: RedfishAPI instance
        task_uri: Task @odata.id or full URL (e.g. a Location header)
        timeout: Maximum seconds to wait
        interval: Seconds to sleep between polls
        clock: Monotonic clock, replaceable in tests
        sleep: Sleep function, replaceable in tests

    Returns:
        True if the task completed with TaskStatus OK, False for any other terminal outcome

    Raises:
        TaskTimeoutError: If the task is still running after the timeout
    """
    start = clock()
    while True:
        task = api.get(task_uri).data
        state = task.get('TaskState')
        status = task.get('TaskStatus')
        logger.debug('Task %s: state=%s status=%s percent=%s', task_uri, state, status,
                     task.get('PercentComplete'))

        if clock() - start >= timeout:
            raise TaskTimeoutError(f'Task did not complete within {timeout} seconds',
                                   uri=task_uri, operation='wait_for_task')
        if state == TaskState.COMPLETED:
            return status == 'OK'
        if state in TaskState.FAILED:
            logger.warning('Task %s ended in state %s: %s', task_uri, state, task.get('Messages'))
            return False

        sleep(interval)
