"""Option file expansion (`@file` arguments).

The expander is a plain library call. Command-line front ends run it over
argv before parsing flags so long argument lists can live in files.
"""
