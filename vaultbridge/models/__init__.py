from .archive import (ArchiveDescriptor, ArchiveState, JobDescription, JobStatus, RetrievalJob,
                      ACTIVE_JOB_STATES)

__all__ = ['ArchiveDescriptor', 'ArchiveState', 'JobDescription', 'JobStatus', 'RetrievalJob',
           'ACTIVE_JOB_STATES']
