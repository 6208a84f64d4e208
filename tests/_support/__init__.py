"""
Test support for tagorm tests.

``records`` holds the dataclass records the tests map; ``fakes`` holds an
in-memory backend that records every statement it is asked to run.
"""
