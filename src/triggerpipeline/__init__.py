from .builds import cancel_build, trigger_build
from .errors import BuildFailed, ConfigurationInvalid, PollTimeout, RetryError, TriggerError
from .helpers import poll, retry
from .model import Build, BuildResult, JobKind, JobPath, PipelineDescriptor, RemoteJob, RetryPolicy
from .multibranch import ensure_branch_job
from .resolver import ensure_job_path
from .runner import TriggerRequest, trigger_pipeline

__version__ = "0.1.0"

__all__ = [
    "cancel_build", "trigger_build", "ensure_branch_job", "ensure_job_path", "trigger_pipeline",
    "TriggerRequest", "poll", "retry",
    "Build", "BuildResult", "JobKind", "JobPath", "PipelineDescriptor", "RemoteJob", "RetryPolicy",
    "TriggerError", "ConfigurationInvalid", "PollTimeout", "RetryError", "BuildFailed",
]
