"""
Root pytest configuration.
Sets the testing environment before anything imports the app, so the record
store is built on the in-memory backend.
"""
import os

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")
