# -*- coding: utf-8 -*-
"""
定时任务实现模块

功能：
- 启动后立即执行一次采集，之后按固定间隔执行
- 依次调用所有 Source Collector，单个 collector 失败不影响其他 collector
- 只在采集成功时更新 Metric Store，失败时保留上次的数据
"""

import threading
import time
import logging
from typing import Dict, List, Optional, Set
from collector.observation import CollectResult, CollectionCycle, ErrorKind
from collector.store import MetricStore
from provider.base import SourceCollector

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 3600


class CollectionScheduler:
    """
    采集周期调度器

    职责：
    1. 决定"什么时候采集"（立即一次 + 固定间隔）
    2. 把每个 collector 的成功结果按指标族整体提交给 Metric Store
    3. 隔离失败：记录日志和错误计数，继续下一个 collector
    """

    def __init__(
        self,
        collectors: List[SourceCollector],
        store: MetricStore,
        interval: int = DEFAULT_INTERVAL
    ):
        """
        初始化调度器

        Args:
            collectors: Source Collector 列表
            store: Metric Store
            interval: 采集间隔（秒），默认 3600（1 小时）
        """
        self.collectors = list(collectors)
        self.store = store
        self.interval = interval

        # 声明所有指标族
        for collector in self.collectors:
            for family in collector.families:
                self.store.register(family)

        # 控制标志
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._cycle_lock = threading.Lock()

        # 未配置凭证的 collector，只记录一次日志，重启前不再调用
        self._unconfigured: Set[str] = set()
        self._last_cycle: Optional[CollectionCycle] = None
        self._cycle_count = 0

        logger.info(
            f"CollectionScheduler 初始化完成: collectors={[c.name for c in self.collectors]}, interval={interval}s"
        )

    def start(self):
        """
        启动后台采集线程

        线程启动后立即执行一次采集，之后每 interval 秒执行一次
        """
        if self._thread and self._thread.is_alive():
            logger.warning("定时任务已在运行")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="CollectionThread",
            daemon=True
        )
        self._thread.start()
        logger.info("采集线程已启动")

    def stop(self, timeout: Optional[float] = None):
        """
        停止定时任务

        不再调度新的采集周期；正在执行的周期会执行完

        Args:
            timeout: 等待线程结束的最长时间（秒），None 表示一直等待
        """
        if not self._thread:
            return

        logger.info("停止定时任务调度器...")
        self._stop_event.set()

        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)

        logger.info("定时任务调度器已停止")

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive() and not self._stop_event.is_set())

    def _run_loop(self):
        logger.info(f"[Scheduler] 采集循环启动，间隔: {self.interval} 秒")

        while not self._stop_event.is_set():
            try:
                self.run_cycle()
            except Exception as e:
                # 捕获异常，打印日志，不退出线程
                logger.error(f"[Scheduler] 采集周期异常: {e}", exc_info=True)

            # 等待指定间隔，收到停止信号立即返回
            if self._stop_event.wait(self.interval):
                break

        logger.info("[Scheduler] 采集循环已退出")

    def run_cycle(self) -> CollectionCycle:
        """
        执行一次采集周期

        Returns:
            CollectionCycle，包含每个 collector 的结果
        """
        with self._cycle_lock:
            self._cycle_count += 1
            cycle = CollectionCycle()
            logger.info(f"[Scheduler] 采集周期 #{self._cycle_count} 开始")

            for collector in self.collectors:
                if collector.name in self._unconfigured:
                    continue
                cycle.results[collector.name] = self._run_collector(collector)

            cycle.finished_at = time.time()
            self._last_cycle = cycle

            summary = cycle.get_summary()
            logger.info(
                f"[Scheduler] 采集周期 #{self._cycle_count} 完成: 成功={summary['success']}, "
                f"跳过={summary['skipped']}, 失败={summary['failed']}, "
                f"耗时={cycle.finished_at - cycle.started_at:.2f}s"
            )
            return cycle

    def _run_collector(self, collector: SourceCollector) -> CollectResult:
        start_time = time.time()
        try:
            result = collector.collect()
        except Exception as e:
            logger.error(f"[Scheduler] {collector.name} 采集异常: {e}", exc_info=True)
            result = CollectResult.failure(collector.name, ErrorKind.TRANSIENT, f"未预期的异常: {e}")
        finally:
            self.store.observe_duration(collector.name, time.time() - start_time)

        if result.is_success():
            try:
                self._apply(collector, result)
                return result
            except ValueError as e:
                result = CollectResult.failure(collector.name, ErrorKind.INVALID_RESPONSE, f"写入 Metric Store 失败: {e}")
            except KeyError as e:
                logger.error(f"[Scheduler] {collector.name} 的指标族未在 Metric Store 中注册: {e}", exc_info=True)
                result = CollectResult.failure(collector.name, ErrorKind.INTERNAL, f"指标族未注册: {e}")

        if result.is_skipped():
            self._unconfigured.add(collector.name)
            self.store.record_skipped(collector.name, result.error.kind.value)
            logger.warning(f"[Scheduler] {collector.name} 未配置，跳过且重启前不再采集: {result.error.detail}")
        else:
            self.store.record_error(collector.name, result.error.kind.value)
            logger.error(f"[Scheduler] {collector.name} 采集失败（保留上次数据）: {result.error}")

        return result

    def _apply(self, collector: SourceCollector, result: CollectResult):
        """按指标族把成功结果提交给 Metric Store（没有观测值的指标族会被清空）"""
        owned = {family.name for family in collector.families}

        for family_name in result.batch.family_names():
            if family_name not in owned:
                logger.warning(f"[Scheduler] {collector.name} 返回了不属于它的指标族 {family_name}，已忽略")

        # 所有指标族一起提交，任意一个出错时都不修改
        self.store.update_many({
            family.name: result.batch.for_family(family.name)
            for family in collector.families
        })

        logger.info(f"[Scheduler] {collector.name} 采集成功: {result.observation_count} 个观测值")

    def get_status(self) -> Dict:
        """
        获取定时任务状态

        Returns:
            状态信息字典
        """
        return {
            'running': self.is_running(),
            'interval': self.interval,
            'cycles': self._cycle_count,
            'unconfigured': sorted(self._unconfigured),
            'last_cycle': self._last_cycle.get_summary() if self._last_cycle else None
        }
