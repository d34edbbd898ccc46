"""
GitlessSync Client - Sync Operations Module

Implements the reconciliation cycle between the local vault and the
remote repository: snapshot, classify, plan, resolve conflicts, execute
and persist. One cycle makes at most one commit and advances the branch
head only if nobody else moved it in the meantime.

Author: GitlessSync Project
"""

import io
import logging
import threading
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Callable, List, Dict, Tuple

from gitless_sync.api import encode_blob_content, git_blob_sha, has_text_extension
from gitless_sync.exceptions import GitlessSyncAPIError
from gitless_sync.models import (
    ActionType,
    ConflictFile,
    ConflictResolution,
    FileChangeClass,
    FileEventType,
    FileMetadata,
    LocalFile,
    RemoteTreeEntry,
    RemoteTreeSnapshot,
    SyncAction,
    SyncPlan,
    SyncResult,
    SyncState,
    now_ms
)
from gitless_sync.models.sync_plan import ACTIONS_BY_CLASS
from .conflict_resolver import ConflictResolver

# Configure logging
logger = logging.getLogger(__name__)


# File created to give an empty repository its first commit
SEED_FILE = "README.md"


def classify_path(local: Optional[LocalFile], remote: Optional[RemoteTreeEntry],
                  entry: Optional[FileMetadata], dirty: bool) -> FileChangeClass:
    """
    Classify how a path diverged since the last sync.

    Args:
        local: Local listing entry, None if the file is absent locally
        remote: Remote tree entry, None if absent remotely
        entry: Stored metadata, None if the path was never seen
        dirty: Whether the local copy changed since the stored sha

    Returns:
        Exactly one change class
    """
    stored_sha = entry.sha if entry else None

    if local and remote:
        # Never synced on both sides, only the content can tell
        if stored_sha is None:
            return FileChangeClass.BOTH_CHANGED
        remote_changed = remote.sha != stored_sha
        if dirty and remote_changed:
            return FileChangeClass.BOTH_CHANGED
        if dirty:
            return FileChangeClass.LOCAL_ONLY_CHANGE
        if remote_changed:
            return FileChangeClass.REMOTE_ONLY_CHANGE
        return FileChangeClass.UNCHANGED

    if local:
        # A local edit survives a remote delete
        if stored_sha is None or dirty:
            return FileChangeClass.LOCAL_NEW
        return FileChangeClass.REMOTE_DELETED

    if remote:
        if stored_sha is None:
            return FileChangeClass.REMOTE_NEW
        # A remote edit survives a local delete
        if remote.sha != stored_sha:
            return FileChangeClass.REMOTE_ONLY_CHANGE
        return FileChangeClass.LOCAL_DELETED

    return FileChangeClass.GONE


@dataclass
class CycleContext:
    """State observed at Snapshot time, carried through the whole cycle"""
    tree: RemoteTreeSnapshot
    head_sha: str
    local_files: Dict[str, LocalFile]
    entries: Dict[str, FileMetadata]
    plan: SyncPlan = field(default_factory=SyncPlan)


class SyncOperations:
    """
    Reconciliation engine between the vault and the remote repository.

    Responsibilities:
    - Run sync cycles, one at a time
    - Suspend on conflicts until resolutions arrive
    - Track local change notifications in the metadata store
    - Report progress via callbacks
    """

    def __init__(self, api_client, vault_manager, metadata_store,
                 conflict_resolver: Optional[ConflictResolver] = None,
                 max_parallel_uploads: int = 4):
        """
        Initialize sync operations handler.

        Args:
            api_client: GitHubAPI instance for remote object operations
            vault_manager: VaultManager instance for local file access
            metadata_store: MetadataStore instance, owned by this engine
            conflict_resolver: Decides conflicting content, None always suspends
            max_parallel_uploads: Blob creations allowed in flight at once
        """
        self.api = api_client
        self.vault = vault_manager
        self.metadata = metadata_store
        self.resolver = conflict_resolver
        self.max_parallel_uploads = max(1, max_parallel_uploads)

        self.state = SyncState.IDLE
        self.cancel_requested: bool = False
        self._state_lock = threading.Lock()
        self._rerun_requested = False
        self._deferred_events: List[Tuple[FileEventType, str]] = []
        self._pending: Optional[CycleContext] = None
        self._progress: Optional[Callable] = None

    # ==================== Cycle control ====================

    @property
    def pending_conflicts(self) -> List[ConflictFile]:
        with self._state_lock:
            return list(self._pending.plan.conflicts) if self._pending else []

    def sync(self, progress_callback: Optional[Callable] = None) -> SyncResult:
        """
        Run one sync cycle.

        A call made while another cycle is in flight (including one
        awaiting conflict resolution) does not start a second cycle. It
        returns COALESCED and one more cycle runs once the current one ends.

        Args:
            progress_callback: Optional callback for progress updates
                             Called with (message: str, current: int, total: int)

        Returns:
            Result of the cycle
        """
        if not self._begin_cycle():
            logger.info("Sync already in progress, trigger coalesced")
            return SyncResult(SyncState.COALESCED)

        self._progress = progress_callback
        try:
            result = self._guarded(self._run_cycle)
        except Exception:
            self._finish_cycle(SyncResult(SyncState.FAILED))
            raise
        return self._finish_cycle(result)

    def resolve_conflicts(self, resolutions: List[ConflictResolution]) -> SyncResult:
        """
        Resume a cycle suspended on conflicts.

        Args:
            resolutions: Exactly one resolution for every pending conflict

        Returns:
            Result of the resumed cycle

        Raises:
            RuntimeError: If no cycle is awaiting resolution
            ValueError: If the batch does not match the pending conflicts,
                        the cycle then stays suspended
        """
        with self._state_lock:
            if self.state != SyncState.AWAITING_RESOLUTION or self._pending is None:
                raise RuntimeError("No conflicts awaiting resolution")
            self._check_resolutions(self._pending.plan.conflicts, resolutions)
            context = self._pending
            self._pending = None
            self.state = SyncState.RUNNING

        logger.info(f"Resuming sync with {len(resolutions)} resolved conflicts")

        def resume() -> SyncResult:
            self._fold_resolutions(context.plan, resolutions)
            self._drop_stale_actions(context)
            return self._execute(context)

        try:
            result = self._guarded(resume)
        except Exception:
            self._finish_cycle(SyncResult(SyncState.FAILED))
            raise
        return self._finish_cycle(result)

    def _drop_stale_actions(self, context: CycleContext):
        """
        Remove actions planned on a local state that changed while the cycle waited.

        Downloads and deletes are only safe for files that still look the
        way they did at Snapshot. A file edited, created or removed during
        the wait keeps its local state and is planned again by a follow-up
        cycle.
        """
        with self._state_lock:
            touched = {path for _, path in self._deferred_events}

        def changed(path: str) -> bool:
            seen = context.local_files.get(path)
            return path in touched or (seen.mtime if seen else None) != self.vault.mtime(path)

        guarded = (ActionType.DOWNLOAD, ActionType.DELETE_LOCAL, ActionType.DELETE_REMOTE)
        stale = [a for a in context.plan.actions
                 if a.action in guarded and not a.from_conflict and changed(a.path)]
        stale_adoptions = [path for path in context.plan.adopted_shas if changed(path)]

        if not stale and not stale_adoptions:
            return

        for action in stale:
            context.plan.actions.remove(action)
            logger.warning(f"{action.path} changed locally while waiting for conflict resolution, "
                           f"skipping {action.action.value}")
        for path in stale_adoptions:
            del context.plan.adopted_shas[path]
            logger.warning(f"{path} changed locally while waiting for conflict resolution, "
                           f"keeping it dirty")
        with self._state_lock:
            self._rerun_requested = True

    def cancel_operation(self):
        """
        Cancel current operation.

        A cycle awaiting resolution is dropped without touching metadata.
        A running cycle stops before its first remote write.
        """
        logger.info("Cancel requested for current operation")
        with self._state_lock:
            self.cancel_requested = True
            if self.state != SyncState.AWAITING_RESOLUTION:
                return
            self._pending = None

        self._finish_cycle(SyncResult(SyncState.CANCELLED))

    def _begin_cycle(self, request_rerun: bool = True) -> bool:
        with self._state_lock:
            if self.state in (SyncState.RUNNING, SyncState.AWAITING_RESOLUTION):
                self._rerun_requested = self._rerun_requested or request_rerun
                return False
            self.state = SyncState.RUNNING
            self.cancel_requested = False
            return True

    def _finish_cycle(self, result: SyncResult) -> SyncResult:
        """
        Leave the running state, replay queued events and run a coalesced trigger.
        """
        with self._state_lock:
            if result.state == SyncState.AWAITING_RESOLUTION:
                self.state = SyncState.AWAITING_RESOLUTION
                return result
            self.state = SyncState.IDLE
            events, self._deferred_events = self._deferred_events, []
            rerun, self._rerun_requested = self._rerun_requested, False

        if events:
            for event_type, path in events:
                self._apply_file_event(event_type, path)
            self.metadata.save()

        if rerun:
            logger.info("Running sync triggered during previous cycle")
            follow_up = self.sync(self._progress)
            logger.info(f"Follow-up sync finished: {follow_up.state.value}")

        return result

    def _guarded(self, step: Callable[[], SyncResult]) -> SyncResult:
        """Run a cycle step, turning failures into a FAILED result after logging them."""
        try:
            return step()
        except GitlessSyncAPIError as e:
            logger.error(f"Sync failed: {e.get_user_friendly_message()}", extra=e.to_context())
            self._report(f"Sync failed: {e.get_user_friendly_message()}", 0)
            return SyncResult(SyncState.FAILED, error=e)
        except OSError as e:
            logger.error(f"Sync failed on local file access: {e}")
            self._report(f"Sync failed: {e}", 0)
            return SyncResult(SyncState.FAILED, error=e)

    def _report(self, message: str, current: int, total: int = 100):
        if self._progress:
            self._progress(message, current, total)

    # ==================== Change notifications ====================

    def handle_file_event(self, event_type: FileEventType, path: str):
        """
        Record a local change notification.

        Events that arrive while a cycle is in flight are queued and
        applied after it ends, so the cycle never sees metadata move
        underneath it.

        Args:
            event_type: Created, modified or deleted
            path: Vault relative path
        """
        if self.vault.is_ignored(path):
            return

        with self._state_lock:
            if self.state in (SyncState.RUNNING, SyncState.AWAITING_RESOLUTION):
                self._deferred_events.append((event_type, path))
                return
            self._apply_file_event(event_type, path)
        self.metadata.save()

    def _apply_file_event(self, event_type: FileEventType, path: str):
        entry = self.metadata.get(path)

        if event_type == FileEventType.DELETED:
            if entry is not None:
                self.metadata.upsert(path, deleted=True, deleted_at=now_ms())
            return

        if entry is not None and entry.just_downloaded:
            # This event was caused by our own write
            self.metadata.upsert(path, just_downloaded=False)
            logger.debug(f"Ignoring change event for just downloaded file {path}")
            return

        self.metadata.upsert(path, dirty=True, last_modified=now_ms(), deleted=None, deleted_at=None)

    # ==================== Snapshot ====================

    def _snapshot(self, seed_empty: bool = True) -> CycleContext:
        """
        Read remote tree, branch head, local listing and metadata.

        The head is read before the tree. A commit landing in between
        then shows up as a moved head when the ref is about to advance.

        Args:
            seed_empty: Give an empty repository its first commit,
                        otherwise its 409 error is raised
        """
        try:
            head_sha = self.api.read_ref_head()
        except GitlessSyncAPIError as e:
            if e.status != 409 or not seed_empty:
                raise
            head_sha = self._seed_empty_repository()

        tree = self.api.fetch_tree()
        local_files = {f.path: f for f in self.vault.list()}
        entries = self.metadata.snapshot()
        logger.info(f"Snapshot: {len(tree.files)} remote files, {len(local_files)} local files, "
                    f"{len(entries)} tracked")
        return CycleContext(tree=tree, head_sha=head_sha, local_files=local_files, entries=entries)

    def _seed_empty_repository(self) -> str:
        """
        Give a repository without commits its first one.

        The git database endpoints refuse to work on an empty repository,
        so the first commit goes through the contents API.
        """
        logger.info(f"Remote repository is empty, creating {SEED_FILE}")
        content = self.vault.read(SEED_FILE) if self.vault.exists(SEED_FILE) else b""
        self.api.create_file(SEED_FILE, content, "First sync")
        return self.api.read_ref_head()

    # ==================== Classify and plan ====================

    def _is_dirty(self, local: Optional[LocalFile], entry: Optional[FileMetadata]) -> bool:
        if entry is None:
            return local is not None
        if entry.dirty:
            return True
        # Edits made while nobody was listening for change notifications
        return local is not None and local.mtime > entry.last_modified

    def _classify(self, context: CycleContext) -> Dict[str, FileChangeClass]:
        classes = {}
        all_paths = set(context.local_files) | set(context.tree.files) | set(context.entries)
        for path in sorted(all_paths):
            if self.vault.is_ignored(path):
                continue
            local = context.local_files.get(path)
            entry = context.entries.get(path)
            classes[path] = classify_path(local, context.tree.files.get(path), entry,
                                          self._is_dirty(local, entry))
        return classes

    def _plan(self, context: CycleContext) -> SyncPlan:
        """
        Map every path to an action, batching conflicts.

        Returns:
            The cycle's plan, also stored on the context
        """
        plan = context.plan
        for path, change in self._classify(context).items():
            remote = context.tree.files.get(path)

            if change == FileChangeClass.UNCHANGED:
                continue

            if change == FileChangeClass.BOTH_CHANGED:
                self._plan_both_changed(path, remote, plan)
                continue

            if change == FileChangeClass.GONE:
                # Purge only once a previous cycle already saw the path gone
                if context.entries[path].deleted:
                    plan.purges.append(path)
                else:
                    plan.tombstones.append(path)
                continue

            plan.actions.append(SyncAction(
                path=path,
                action=ACTIONS_BY_CLASS[change],
                remote_sha=remote.sha if remote else None
            ))

        logger.info(f"Plan: {len(plan.by_type(ActionType.UPLOAD))} uploads, "
                    f"{len(plan.by_type(ActionType.DOWNLOAD))} downloads, "
                    f"{len(plan.by_type(ActionType.DELETE_LOCAL))} local deletes, "
                    f"{len(plan.by_type(ActionType.DELETE_REMOTE))} remote deletes, "
                    f"{len(plan.conflicts)} conflicts")
        return plan

    def _plan_both_changed(self, path: str, remote: RemoteTreeEntry, plan: SyncPlan):
        """
        Decide between a real conflict and identical content.

        Identical bytes on both sides are not a conflict whatever the
        stored sha says, the remote sha is simply adopted.
        """
        local_bytes = self.vault.read(path)
        if git_blob_sha(local_bytes) == remote.sha:
            plan.adopted_shas[path] = remote.sha
            return

        remote_bytes = self.api.read_blob(remote.sha)
        if remote_bytes == local_bytes:
            plan.adopted_shas[path] = remote.sha
            return

        if has_text_extension(path):
            try:
                plan.conflicts.append(ConflictFile(
                    path=path,
                    local_content=local_bytes.decode("utf-8"),
                    remote_content=remote_bytes.decode("utf-8")
                ))
                return
            except UnicodeDecodeError:
                logger.debug(f"{path} is not valid UTF-8, handing it over as binary conflict")

        plan.conflicts.append(ConflictFile(
            path=path,
            local_content=local_bytes,
            remote_content=remote_bytes,
            binary=True
        ))

    def _check_resolutions(self, conflicts: List[ConflictFile], resolutions: List[ConflictResolution]):
        expected = sorted(c.path for c in conflicts)
        received = sorted(r.path for r in resolutions)
        if expected != received:
            raise ValueError(f"Resolutions must cover exactly the pending conflicts {expected}, got {received}")

    def _fold_resolutions(self, plan: SyncPlan, resolutions: List[ConflictResolution]):
        for resolution in resolutions:
            plan.actions.append(SyncAction(
                path=resolution.path,
                action=ActionType.UPLOAD,
                content=(resolution.content.encode("utf-8") if isinstance(resolution.content, str)
                         else bytes(resolution.content)),
                from_conflict=True
            ))

    def _run_cycle(self) -> SyncResult:
        self._report("Fetching remote state...", 5)
        context = self._snapshot()

        if self._should_bootstrap(context):
            return self._bootstrap_from_archive(context)

        self._report("Comparing files...", 15)
        plan = self._plan(context)

        if plan.conflicts:
            if self._check_cancelled():
                return SyncResult(SyncState.CANCELLED)
            resolutions = self.resolver.resolve(list(plan.conflicts)) if self.resolver else None
            if resolutions is None:
                logger.info(f"Sync suspended, {len(plan.conflicts)} conflicts awaiting resolution")
                with self._state_lock:
                    self._pending = context
                self._report("Waiting for conflict resolution", 30)
                return SyncResult(SyncState.AWAITING_RESOLUTION, conflicts=list(plan.conflicts))
            self._check_resolutions(plan.conflicts, resolutions)
            self._fold_resolutions(plan, resolutions)

        return self._execute(context)

    def _check_cancelled(self) -> bool:
        if self.cancel_requested:
            logger.warning("Sync cancelled by user")
        return self.cancel_requested

    # ==================== Execute ====================

    def _execute(self, context: CycleContext) -> SyncResult:
        """
        Apply the plan: remote writes first, local writes once the remote is confirmed.
        """
        plan = context.plan
        if self._check_cancelled():
            return SyncResult(SyncState.CANCELLED)

        result = SyncResult(SyncState.COMPLETED)
        uploads = plan.by_type(ActionType.UPLOAD)
        remote_deletes = plan.by_type(ActionType.DELETE_REMOTE)

        # Read everything up front so a failing read aborts before any write
        self._report("Reading files...", 25)
        downloads = {a.path: self.api.read_blob(a.remote_sha) for a in plan.by_type(ActionType.DOWNLOAD)}
        for action in uploads:
            if action.content is None:
                action.content = self.vault.read(action.path)

        blob_shas: Dict[str, str] = {}
        if plan.has_remote_changes:
            commit_sha, blob_shas = self._commit_remote_changes(context, uploads, remote_deletes)
            if commit_sha is None:
                self._report("Remote changed during sync, will retry", 0)
                return SyncResult(SyncState.ABORTED)
            result.commit_sha = commit_sha

        # The remote is confirmed from here on, every completed path is persisted
        try:
            self._report("Applying local changes...", 80)
            for action in uploads:
                self._persist_upload(action, blob_shas[action.path])
                result.uploaded.append(action.path)
            for action in remote_deletes:
                self.metadata.upsert(action.path, deleted=True, deleted_at=now_ms(), dirty=False)
                result.deleted_remote.append(action.path)
            for action in plan.by_type(ActionType.DOWNLOAD):
                self.vault.write(action.path, downloads[action.path])
                self.metadata.upsert(action.path, sha=action.remote_sha, dirty=False, just_downloaded=True,
                                     last_modified=self._written_at(action.path), deleted=None, deleted_at=None)
                result.downloaded.append(action.path)
            for action in plan.by_type(ActionType.DELETE_LOCAL):
                self.vault.delete(action.path)
                self.metadata.upsert(action.path, deleted=True, deleted_at=now_ms(), dirty=False)
                result.deleted_local.append(action.path)

            for path, sha in plan.adopted_shas.items():
                self.metadata.upsert(path, sha=sha, dirty=False, last_modified=now_ms())
            for path in plan.tombstones:
                self.metadata.upsert(path, deleted=True, deleted_at=now_ms())
            for path in plan.purges:
                self.metadata.remove(path)
            self.metadata.last_sync = now_ms()
        finally:
            self.metadata.save()

        logger.info(f"Sync completed: {len(result.uploaded)} uploaded, {len(result.downloaded)} downloaded, "
                    f"{len(result.deleted_local) + len(result.deleted_remote)} deleted")
        self._report("Sync completed", 100)
        return result

    def _persist_upload(self, action: SyncAction, sha: str):
        fields = dict(sha=sha, dirty=False, deleted=None, deleted_at=None)
        if action.from_conflict:
            # The chosen content may differ from what is on disk
            self.vault.write(action.path, action.content)
            fields["just_downloaded"] = True
        fields["last_modified"] = self._written_at(action.path)
        self.metadata.upsert(action.path, **fields)

    def _written_at(self, path: str) -> int:
        """Stamp for lastModified taken after a write, never older than the file's mtime."""
        return max(now_ms(), self.vault.mtime(path) or 0)

    def _commit_remote_changes(self, context: CycleContext, uploads: List[SyncAction],
                               remote_deletes: List[SyncAction]) -> Tuple[Optional[str], Dict[str, str]]:
        """
        Create blobs, one tree and one commit, then advance the branch head.

        Returns:
            Tuple of (commit sha or None if the head moved, blob sha per uploaded path)
        """
        self._report("Uploading files...", 40)
        blob_shas = self._create_blobs(uploads)

        entries = []
        for action in uploads:
            remote = context.tree.files.get(action.path)
            entries.append({
                "path": action.path,
                "mode": remote.mode if remote else "100644",
                "type": "blob",
                "sha": blob_shas[action.path],
            })
        for action in remote_deletes:
            entries.append({"path": action.path, "mode": "100644", "type": "blob", "sha": None})

        self._report("Creating commit...", 65)
        tree_sha = self.api.create_tree(entries, context.tree.sha)
        message = f"Sync {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC"
        commit_sha = self.api.create_commit(message, tree_sha, context.head_sha)

        current_head = self.api.read_ref_head()
        if current_head != context.head_sha:
            logger.warning(f"Branch head moved from {context.head_sha} to {current_head} during sync, "
                           f"aborting cycle")
            return None, blob_shas

        self.api.update_ref_head(commit_sha)
        logger.info(f"Branch head advanced to {commit_sha}")
        return commit_sha, blob_shas

    def _create_blobs(self, uploads: List[SyncAction]) -> Dict[str, str]:
        def create(action: SyncAction) -> Tuple[str, str]:
            content, encoding = encode_blob_content(action.path, action.content)
            logger.debug(f"Creating {encoding} blob for {action.path}")
            return action.path, self.api.create_blob(content, encoding)

        if len(uploads) <= 1 or self.max_parallel_uploads == 1:
            return dict(create(action) for action in uploads)

        # Blobs are independent, the tree creation after this waits for all of them
        with ThreadPoolExecutor(max_workers=min(self.max_parallel_uploads, len(uploads))) as pool:
            return dict(pool.map(create, uploads))

    # ==================== First sync ====================

    def _should_bootstrap(self, context: CycleContext) -> bool:
        return (self.metadata.last_sync == 0 and not context.local_files
                and not context.entries and bool(context.tree.files))

    def _bootstrap_from_archive(self, context: CycleContext) -> SyncResult:
        """
        Fill an empty vault from the branch zip archive in one request.

        Members missing from the archive are picked up by the next cycle.
        """
        logger.info(f"Empty vault, downloading archive of {len(context.tree.files)} remote files")
        self._report("Downloading repository archive...", 30)
        archive = self.api.download_archive()

        result = SyncResult(SyncState.COMPLETED)
        try:
            with zipfile.ZipFile(io.BytesIO(archive)) as zf:
                for info in zf.infolist():
                    if info.is_dir():
                        continue
                    # Members live below a "<owner>-<repo>-<sha>/" folder
                    parts = info.filename.split("/", 1)
                    if len(parts) < 2:
                        continue
                    path = parts[1]
                    remote = context.tree.files.get(path)
                    if remote is None or self.vault.is_ignored(path):
                        continue
                    self.vault.write(path, zf.read(info))
                    self.metadata.upsert(path, sha=remote.sha, dirty=False, just_downloaded=True,
                                         last_modified=self._written_at(path))
                    result.downloaded.append(path)
            self.metadata.last_sync = now_ms()
        finally:
            self.metadata.save()

        logger.info(f"First sync downloaded {len(result.downloaded)} files from archive")
        self._report("Sync completed", 100)
        return result

    # ==================== Preview ====================

    def preview(self) -> Dict[str, List[str]]:
        """
        Classify every path without changing anything.

        Conflicts are reported as both-changed without comparing content.
        An empty repository is reported, not seeded.

        Returns:
            Change class value mapped to the paths in that class

        Raises:
            RuntimeError: If a cycle is in flight
        """
        if not self._begin_cycle(request_rerun=False):
            raise RuntimeError("Sync in progress")

        try:
            try:
                context = self._snapshot(seed_empty=False)
            except GitlessSyncAPIError as e:
                if e.status != 409:
                    raise
                logger.info("Remote repository is empty, every local file is new")
                return {FileChangeClass.LOCAL_NEW.value: sorted(f.path for f in self.vault.list())}

            summary: Dict[str, List[str]] = {}
            for path, change in self._classify(context).items():
                summary.setdefault(change.value, []).append(path)
            return summary
        finally:
            self._finish_cycle(SyncResult(SyncState.COMPLETED))
