"""Job dispatcher boundary."""

from .jenkins import JenkinsJobDispatcher, JobDispatcher, job_path, queue_item_id

__all__ = ["JenkinsJobDispatcher", "JobDispatcher", "job_path", "queue_item_id"]
