from typing import Callable, List

from chalicelib.utils.exceptions import StorageUnavailable, PartialMutation
from chalicelib.utils.logger import logger


class Saga:
    """
    Runs a multi-step mutation as a sequence of independent item-level calls.

    There is no transaction and no compensation. When a step fails with StorageUnavailable:
    - nothing could have changed yet (no mutating step completed and the failing step is a single
      item call) -> StorageUnavailable is re-raised as is;
    - otherwise -> PartialMutation with the completed steps, the failed step and the applied keys/ids.
    """

    def __init__(self, operation: str):
        self.operation = operation
        self.completed_steps: List[str] = []
        self.applied: List[str] = []
        self.mutated = False

    def step(self, name: str, func: Callable, *args, mutating: bool = False, atomic: bool = True,
             applied: List[str] = None):
        """
        :param mutating: the step writes to the table
        :param atomic: the step is a single item call, a failure means it did not apply.
        A batch call is not atomic, some of its chunks may be committed before it fails
        :param applied: ids/keys which are changed once the step completes
        """
        logger.info(f'{self.operation} ::: step={name} started')
        try:
            result = func(*args)
        except StorageUnavailable as error:
            if not self.mutated and (atomic or not mutating):
                logger.warning(f'{self.operation} ::: step={name} failed, nothing was changed')
                raise
            logger.error(f'{self.operation} ::: step={name} failed after steps={self.completed_steps}, '
                         f'the table is left partially mutated')
            raise PartialMutation(
                f'{self.operation} failed at step {name}: {error}',
                operation=self.operation,
                completed_steps=self.completed_steps,
                failed_step=name,
                applied=self.applied
            ) from error

        self.completed_steps.append(name)
        if mutating:
            self.mutated = True
            self.applied.extend(applied or [])
        logger.info(f'{self.operation} ::: step={name} finished')
        return result
