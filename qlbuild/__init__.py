"""
qlbuild: build QuantLib as an MSVC shared library.
"""
