#!/usr/bin/env python3
"""Generate a Fernet encryption key for MAILRELAY_STORE_KEY."""

from cryptography.fernet import Fernet

if __name__ == "__main__":
    key = Fernet.generate_key().decode()
    print("Add this line to your environment to encrypt the subscription store:\n")
    print(f"MAILRELAY_STORE_KEY={key}")
