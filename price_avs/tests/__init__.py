"""
price_avs.tests
---------------
Test package for the price AVS operator.

Notes:
- Chain access is faked in-process (see conftest.FakeChain); nothing here
  talks to a node.
- Private keys and addresses used below are throwaway test values.
"""

from __future__ import annotations

__all__: tuple[str, ...] = ()
