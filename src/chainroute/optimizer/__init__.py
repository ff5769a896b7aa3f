from chainroute.optimizer.optimizer import USAGE_HISTORY_SIZE, CostOptimizer

__all__ = ["USAGE_HISTORY_SIZE", "CostOptimizer"]
