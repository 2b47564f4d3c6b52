"""
Access graph: effective permission closures over relationship-based ACLs,
used to pick realistic inputs for permission-check read benchmarks.
"""
