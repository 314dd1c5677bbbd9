#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/__init__.py
# Purpose: Package init
#
# Description of code and how it works:
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.4.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.4.0 (2026-10-17): Add client module export.
# - 0.2.0 (2026-10-09): Explicit exports for stores/services.
# - 0.1.0 (2026-10-06): Initial package.
###################################################################
#
__all__ = ['config', 'database', 'models', 'schemas', 'stores', 'errors', 'deps', 'main', 'routes_api', 'client']
