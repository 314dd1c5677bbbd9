#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/__init__.py
# Purpose: Stateful core: validation, admission, queue, scheduling, queries.
#
# Author: TrafficNews Team
# Created: 2026-10-07
#
# Version: 0.3.0
# Last Modified: 2026-10-16 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-16): publisher module.
# - 0.1.0 (2026-10-07): Initial services package.
###################################################################
#
__all__ = ['validation', 'admission', 'submission_queue', 'scheduler', 'query', 'incidents', 'publisher']
