# -*- coding: utf-8 -*-
#  _     _
# | |___| |__ _  _
# | / -_) '_ \ || |
# |_\___|_.__/\_,_|
#
# lebu terminal connection manager
# Copyright 2026 lebu contributors
#

__version__ = '0.3.0'
