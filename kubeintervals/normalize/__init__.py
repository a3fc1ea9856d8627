"""Event normalization for kubeintervals.

Turns a single Kubernetes v1.Event into an annotated Interval.

Submodules
----------
extractors -- container names from field paths, image/duration from messages.
locator    -- human readable locator strings for involved objects.
timewindow -- effective event timestamp and the lookback staleness filter.
roles      -- node role annotation from node labels.
engine     -- IntervalEngine: reason dispatch, pathology oracle, interval bounds.
"""
