"""Reference data loader - catalog snapshot taken once per report."""

import logging

from lab_report.domain.model import ReferenceData
from lab_report.service_layer.unit_of_work import AbstractUnitOfWork

logger = logging.getLogger(__name__)


def load_reference_data(uow: AbstractUnitOfWork) -> ReferenceData:
    """
    Read the full test and package catalogs.

    Both collections are small, so they are read whole and not cached
    between reports. Unreadable catalog rows are skipped by the repository
    and only reduce how much can be resolved; store errors propagate.

    Must be called inside an open unit of work.
    """
    tests = uow.catalog.list_tests()
    packages = uow.catalog.list_packages()
    logger.info(f"Loaded reference data: {len(tests)} lab tests, {len(packages)} lab groups")
    return ReferenceData(test_definitions=tuple(tests), package_definitions=tuple(packages))
