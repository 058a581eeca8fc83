"""Chart configuration, validation, compilation and wizard helpers.

Charts are described by a `ChartConfiguration` built step by step in the
wizard. This package contains the schema, axis validation, the plot compiler
and the payload codec used by the configuration store.
"""
