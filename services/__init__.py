"""
Background Services Package

- sync_engine: periodic price and listing refresh jobs
- job_monitor: consumer of job outcome events
- event_bus: in-process pub/sub
- price_lookup: cache-first price read path
"""
