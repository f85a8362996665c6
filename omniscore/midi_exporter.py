"""MidiExporter: writes compiled note events to a multi-track MIDI file."""

from __future__ import annotations

import logging

from midiutil import MIDIFile

from omniscore.score_models import CompileResult, NoteEvent

logger = logging.getLogger(__name__)

# In midiutil Format 1 MIDI, track 0 is the conductor/tempo track.
# Note data written to track 0 is ignored by most players and notation apps.
TRACK_CONDUCTOR = 0
FIRST_DATA_TRACK = 1

# General MIDI reserves channel 10 (index 9) for percussion
PERCUSSION_CHANNEL = 9
N_CHANNELS = 16


class MidiExporter:
    """
    Writes a CompileResult as a Standard MIDI File (format 1).

    Track layout
    ------------
    Track 0: conductor track (tempo, title and composer text; no notes)

    Tracks 1..n: one per instrument row, in ScoreStructure order, followed
        by any undeclared instrument ids in order of their first event. Each
        track is named after the instrument's display name.

    Timing
    ------
    Event start times and durations are in seconds; they are converted to
    beats with ``beats = seconds × (tempo / 60)``, so the file plays back in
    real time at the exporter tempo whatever tempo changes the score had.
    """

    DEFAULT_TEMPO = 120    # BPM
    DEFAULT_VELOCITY = 80  # MIDI note-on velocity (0-127)

    def __init__(self, tempo: float = DEFAULT_TEMPO, velocity: int = DEFAULT_VELOCITY) -> None:
        """
        Args:
            tempo:    Tempo written to the conductor track, in BPM.
            velocity: Note-on velocity for every note.
        """
        if tempo <= 0:
            raise ValueError(f"tempo must be positive, got {tempo}.")
        if not 0 <= velocity <= 127:
            raise ValueError(f"velocity must be in 0-127, got {velocity}.")
        self.tempo = tempo
        self.velocity = velocity

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _seconds_to_beats(self, seconds: float) -> float:
        """Convert a time in seconds to beats at the exporter tempo."""
        return seconds * (self.tempo / 60.0)

    def _track_order(self, result: CompileResult) -> list[tuple[str, str]]:
        """Return ``(instrument_id, track_name)`` pairs, one per data track."""
        order: list[tuple[str, str]] = []
        seen: set[str] = set()
        for group in result.structure.groups:
            for row in group.instruments:
                if row.id not in seen:
                    order.append((row.id, row.name))
                    seen.add(row.id)
        for event in result.events:
            if event.instrument_id not in seen:
                order.append((event.instrument_id, event.instrument_name))
                seen.add(event.instrument_id)
        return order

    @staticmethod
    def _channel_for(track_index: int) -> int:
        channel = track_index % (N_CHANNELS - 1)
        return channel + 1 if channel >= PERCUSSION_CHANNEL else channel

    def _is_playable(self, event: NoteEvent) -> bool:
        return 0 <= event.midi_note <= 127

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, result: CompileResult) -> MIDIFile:
        """Build the in-memory MIDIFile for a compile result."""
        tracks = self._track_order(result)
        midi = MIDIFile(numTracks=len(tracks) + 1, removeDuplicates=False, deinterleave=False)
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)
        for text in (result.metadata.title, result.metadata.composer):
            if text:
                midi.addText(TRACK_CONDUCTOR, 0, text)

        track_of: dict[str, int] = {}
        for index, (instrument_id, name) in enumerate(tracks):
            track = FIRST_DATA_TRACK + index
            track_of[instrument_id] = track
            midi.addTrackName(track, 0, name)

        skipped = 0
        for event in result.events:
            if not self._is_playable(event):
                skipped += 1
                continue
            track = track_of[event.instrument_id]
            midi.addNote(
                track=track,
                channel=self._channel_for(track - FIRST_DATA_TRACK),
                pitch=event.midi_note,
                time=self._seconds_to_beats(event.start_time),
                duration=self._seconds_to_beats(event.duration),
                volume=self.velocity,
            )

        if skipped:
            logger.warning("skipped %d note(s) outside the MIDI range", skipped)
        return midi

    def export(self, result: CompileResult, output_path: str) -> None:
        """
        Render compiled events to a Standard MIDI File.

        Args:
            result:      Output of ScoreCompiler.compile().
            output_path: Destination file path (e.g. "score.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = self.build(result)
        with open(output_path, "wb") as f:
            midi.writeFile(f)
