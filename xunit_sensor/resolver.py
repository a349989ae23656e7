"""Attribution of test cases to the source files they verify."""

import logging
from typing import Iterable, Optional

from .models import TestCase, TestResource
from .resource_finder import ResourceFinder
from .source_index import SourceIndex

logger = logging.getLogger(__name__)


class ResourceResolver:
    """Resolves test cases to resource keys.

    The lookup is performed as follows:

    1. A test case carrying a file path is looked up with that path only.
       The path is taken as authoritative: if it does not resolve, the test
       case stays unresolved and no other strategy is tried.
    2. Otherwise the classname is looked up as if it were a path.
    3. If that fails, the classname is searched in the source index
       (implementations, then declarations, then the literal classname) and
       the resulting path is looked up.
    """

    def __init__(self, finder: ResourceFinder, index: Optional[SourceIndex] = None):
        self.finder = finder
        self.index = index or SourceIndex()

    def resolve(self, test_case: TestCase) -> Optional[str]:
        if test_case.filename is not None:
            logger.debug(f"Performing the 'filename'-based lookup using the value '{test_case.filename}'")
            return self.finder.find(test_case.filename)

        classname = test_case.classname
        if classname is None:
            return None

        logger.debug(f"Performing lookup using classname ('{classname}')")
        resource = self.finder.find(classname)
        if resource is None:
            filepath = self.index.lookup_file_path(classname)
            logger.debug(f"Performing AST-based lookup, determined file path: '{filepath}'")
            resource = self.finder.find(filepath)
        return resource

    def group_by_resource(self, test_cases: Iterable[TestCase],
                          unresolved: Optional[list[TestCase]] = None) -> dict[str, TestResource]:
        """Bucket test cases by resolved resource.

        Unresolved test cases are dropped, or collected into ``unresolved``
        when a list is passed.
        """
        resources: dict[str, TestResource] = {}
        for tc in test_cases:
            logger.debug(f"Trying the resource for the testcase '{tc.fullname}' ...")
            key = self.resolve(tc)
            if key is None:
                logger.warning(f"... no resource found, the testcase '{tc.fullname}' has to be skipped")
                if unresolved is not None:
                    unresolved.append(tc)
                continue

            logger.debug(f"... found! The resource is '{key}'")
            resource = resources.get(key)
            if resource is None:
                resource = TestResource(key)
                resources[key] = resource
            resource.add_test_case(tc)
        return resources
