# SPDX-FileCopyrightText: Copyright (c) 2025 The acuctl Authors. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
CLI modules for acuctl.

Available commands (see main):
- deploy: Upload, submit and follow a deployment
- dry-run: Show the job registration without submitting
- deployments: List stored deployment records
- add-project: Add a project to acurast.json
"""
