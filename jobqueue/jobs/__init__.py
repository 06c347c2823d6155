"""
Job engine.

- Scheduler: producer side, computes run time and priority and persists the job
- Worker: poll loop that claims one job at a time through an adapter
- Executor: runs one claimed job and records success, retry or failure
- JobManager: composition root binding adapters, queues and worker configs
"""
