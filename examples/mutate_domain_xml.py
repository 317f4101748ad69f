#!/usr/bin/env python3
# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Example: run the OnDefineDomain rewrite offline, without virt-launcher.

Handy for checking what a set of annotations does to a domain before putting
them on a VirtualMachine.

Usage:
    python mutate_domain_xml.py domain.xml vmi.json > patched.xml
"""

import logging
import sys
from pathlib import Path

from android_x86_hook import DomainMutator
from android_x86_hook.core.exceptions import HookError

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(1)

    domain_xml = Path(sys.argv[1]).read_bytes()
    vmi = Path(sys.argv[2]).read_bytes()

    try:
        patched = DomainMutator(logger=logger).mutate(vmi, domain_xml)
    except HookError as e:
        logger.error(e.user_message(include_context=True, include_cause=True))
        sys.exit(e.code)

    sys.stdout.write(patched.decode("utf-8"))
    sys.stdout.write("\n")


if __name__ == "__main__":
    main()
