# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# android_x86_hook/cli/help_texts.py
from __future__ import annotations

# Pure help text for the argparse epilog.

YAML_EXAMPLE = r"""# android-x86-hook configuration (YAML)
#
# Run:
#   android-x86-hook --config /etc/android-x86-hook/hook.yaml
#
# Merge multiple configs (later overrides earlier):
#   android-x86-hook --config base.yaml --config overrides.yaml
#
# socket_dir: /var/run/kubevirt-hooks   # virt-launcher scans this directory
# hook_name: android-x86                 # socket is <socket_dir>/<hook_name>.sock
# annotation_domain: kubevirt.io         # keys look like video.vm.<domain>/model
# max_workers: 4                         # gRPC worker threads
# exit_on_decode_error: false            # true: exit after a malformed VMI/domain payload
# verbose: 0                             # 2 = DEBUG, 3 = TRACE (full domain XML dumps)
# json_logs: false
# log_file: /var/log/android-x86-hook.log
"""

ANNOTATION_SUMMARY = r"""VMI annotations (all optional):
  smbios.vm.kubevirt.io/baseBoardManufacturer: "Acme"
  video.vm.kubevirt.io/model: "virtio"
  graphics.vm.kubevirt.io/eglHeadless: ""           # presence is enough
  video.vm.kubevirt.io/vgpu: "<mdev UUID>"          # guest PCI 0000:00:05.0
  qemu.vm.kubevirt.io/args: '["-device", "..."]'    # JSON array of strings
"""
