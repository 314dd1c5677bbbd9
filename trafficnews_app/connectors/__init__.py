#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/connectors/__init__.py
# Purpose: Third-party network collaborators (geocoding, tiles).
#
# Author: TrafficNews Team
# Created: 2026-10-10
#
# Version: 0.1.0
# Last Modified: 2026-10-10 by TrafficNews Team
#
# Revision History:
# - 0.1.0 (2026-10-10): Nominatim connector.
###################################################################
#
__all__ = ['nominatim']
