#!/usr/bin/env python3
"""
KUBECORRELATE EXACT-PAIR CORRELATOR
-----------------------------------
Static lookup from a record identity (`apiVersion_kind[_namespace]_name`)
to one template, built from the user's manual correlation pairs.

Author: KubeCorrelate Team
Date: 2026-10-19
"""

from typing import Dict, List, Mapping, Sequence

from kubecorrelate.core.errors import UnknownMatch, UnknownTemplateReference
from kubecorrelate.core.models import Record, Template, identity


class ExactPairCorrelator:

    def __init__(self, pairs: Mapping[str, str], templates: Sequence[Template]):
        by_name = {t.name: t for t in templates}
        self.pairs: Dict[str, Template] = {}
        for record_identity, template_name in pairs.items():
            template = by_name.get(template_name)
            if template is None:
                raise UnknownTemplateReference(record_identity, template_name)
            self.pairs[record_identity] = template

    def match(self, record: Record) -> List[Template]:
        template = self.pairs.get(identity(record))
        if template is None:
            raise UnknownMatch(record)
        return [template]
