"""Scenario tests for dapm-provision.

These tests run whole provisioning scenarios against the in-process mock
platform and check the requests each deployment received.
"""
