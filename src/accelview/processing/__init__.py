"""This is the processing submodule.

This module contains the classification capabilities that label validated
accelerometer samples with an activity.
"""
