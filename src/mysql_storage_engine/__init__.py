"""
MySQL Storage Engine - pluggable key/value persistence backed by MySQL

A storage engine for hosts that speak the generic get/put/has/del contract.
Entries live in a single two-column table; the first initialization
creates the table and migrates every entry from the previous engine.
"""

__version__ = "0.1.0"
__author__ = "Systems Engineering Portfolio"

ENGINE_NAME = "mysql-storage-engine"
ENGINE_VERSION = __version__
