"""Tests for orthoedit.crispr modules."""

import pytest
from orthoedit.config import DesignConfig
from orthoedit.crispr.repair import (
    SilentMutationStrategy,
    cloning_oligos,
    design_repair_templates,
    mutate_pam,
    mutate_seed,
)
from orthoedit.crispr.sites import (
    Cas9Site,
    Strand,
    find_cas9_sites,
    score_guide,
)
from orthoedit.utils.sequence import reverse_complement, translate


GUIDE = "GATTACAGATTACAGATTAC"

# One forward site at 30; PAM AGG with its GG as the first two bases of codon 18 (GGT)
CDS_PAM_IN_CODON = "AAA" * 10 + GUIDE + "A" + "GGT" + "AAA" * 22

# One forward site at 31; PAM AGG is codon 18 (Arg), so AGG -> AGA breaks it silently
CDS_PAM_CODON = "A" * 31 + GUIDE + "AGG" + "A" * 66

# One reverse site at 40
CDS_REVERSE = "T" * 40 + "CCA" + reverse_complement(GUIDE) + "T" * 40

# One reverse site at 31; its CC sits in codon 11 (ACC), so ACC -> ACT breaks it silently
CDS_REVERSE_PAM = "A" * 31 + "CCA" + "TTGATTACAGATTACAGATT" + "A" * 66

# One reverse site at 30; its CC sits in codon 11 (CCA) where no synonym touches it
CDS_REVERSE_SEED = "A" * 30 + "CCA" + GUIDE + "A" * 67


class TestFindSites:
    """Test Cas9 site discovery."""

    def test_single_forward_site(self):
        """Test a guide followed by an NGG PAM."""
        seq = "A" * 40 + GUIDE + "TGG" + "A" * 40
        sites = find_cas9_sites(seq, 18)

        assert len(sites) == 1
        site = sites[0]
        assert site.position == 40
        assert site.strand == Strand.FORWARD
        assert site.guide_with_pam == GUIDE + "TGG"
        assert site.guide == GUIDE
        assert site.pam == "TGG"
        assert site.context30 == seq[36:66]

    def test_single_reverse_site(self):
        """Test a CCN protospacer on the reverse strand."""
        sites = find_cas9_sites(CDS_REVERSE, 18)

        assert len(sites) == 1
        site = sites[0]
        assert site.position == 40
        assert site.strand == Strand.REVERSE
        assert site.sequence == "CCA" + reverse_complement(GUIDE)
        assert site.guide_with_pam == GUIDE + "TGG"
        assert site.context30 == reverse_complement(CDS_REVERSE[37:67])
        assert site.context30[4:27] == GUIDE + "TGG"

    def test_overlapping_sites(self):
        """Test that NGGG yields two overlapping sites."""
        seq = "A" * 40 + GUIDE + "AGGG" + "A" * 40
        sites = find_cas9_sites(seq, 18)

        assert sorted(s.position for s in sites) == [40, 41]
        assert all(s.strand == Strand.FORWARD for s in sites)

    def test_sorted_by_distance(self):
        """Test that the closest site comes first."""
        seq = "A" * 40 + GUIDE + "AGGG" + "A" * 40
        sites = find_cas9_sites(seq, 14)  # codon start 39

        assert [s.position for s in sites] == [40, 41]

    def test_window_outside_sequence(self):
        """Test a codon beyond the end of the sequence."""
        assert find_cas9_sites(CDS_PAM_CODON, 1000) == []

    def test_no_sites(self):
        """Test a sequence without PAMs."""
        assert find_cas9_sites("ACGTTA" * 30, 20) == []

    def test_window_truncates_search(self):
        """Test that a narrow window misses a distant site."""
        assert find_cas9_sites(CDS_PAM_CODON, 35, window=30) == []

    def test_context_missing_at_edge(self):
        """Test that a site too close to the window edge is unscored."""
        seq = GUIDE + "TGG" + "A" * 40
        sites = find_cas9_sites(seq, 1)

        assert len(sites) == 1
        assert sites[0].context30 is None
        assert sites[0].score is None

    def test_lowercase_input(self):
        """Test that lowercase sequence is searched."""
        assert len(find_cas9_sites(CDS_PAM_CODON.lower(), 13)) == 1


class TestScoreGuide:
    """Test the on-target score heuristic."""

    def test_all_a_context(self):
        """Test the low-GC baseline."""
        assert score_guide("A" * 30) == 83

    def test_position_weight(self):
        """Test that G at context index 5 lowers the score."""
        context = "A" * 5 + "G" + "A" * 24
        assert score_guide(context) == 62

    def test_wrong_length(self):
        """Test invalid contexts."""
        assert score_guide("A" * 29) == 0
        assert score_guide("") == 0

    def test_range(self):
        """Test that scores stay in 0-100."""
        for context in ("G" * 30, "C" * 30, "T" * 30, "GC" * 15):
            assert 0 <= score_guide(context) <= 100

    def test_case_insensitive(self):
        """Test lowercase context."""
        assert score_guide("a" * 30) == score_guide("A" * 30)


class TestCas9Site:
    """Test Cas9Site geometry."""

    def test_forward_offsets(self):
        """Test PAM and seed offsets on the forward strand."""
        site = Cas9Site(position=10, sequence=GUIDE + "TGG", strand=Strand.FORWARD)

        assert site.pam_critical_offsets == (21, 22)
        assert list(site.seed_offsets) == list(range(10, 20))
        assert site.cut_position() == 27

    def test_reverse_offsets(self):
        """Test PAM and seed offsets on the reverse strand."""
        site = Cas9Site(position=10, sequence="CCA" + reverse_complement(GUIDE),
                        strand=Strand.REVERSE)

        assert site.pam_critical_offsets == (0, 1)
        assert list(site.seed_offsets) == list(range(3, 13))
        assert site.cut_position() == 27


class TestCloningOligos:
    """Test guide cloning oligos."""

    def test_oligos(self):
        """Test oligo sequences."""
        oligo_a, oligo_b = cloning_oligos(GUIDE)

        assert oligo_a == "gatc" + GUIDE + "gttttagagctag"
        assert oligo_b == "ctagctctaaaac" + "GTAATCTGTAATCTGTAATC"


class TestSilentMutations:
    """Test PAM and seed mutation helpers."""

    def test_mutate_pam(self):
        """Test the one-base AGG -> AGA change."""
        result = mutate_pam(list("AAAAGGAAA"), {4, 5}, homology_start=0)

        assert result is not None
        arm, changes = result
        assert ''.join(arm) == "AAAAGAAAA"
        assert changes == 1

    def test_mutate_pam_no_synonym(self):
        """Test a PAM inside a Trp codon."""
        assert mutate_pam(list("AAATGGAAA"), {4, 5}, homology_start=0) is None

    def test_mutate_pam_respects_frame(self):
        """Test that codons follow the genomic frame, not the arm."""
        # Arm starts at genomic 1, so arm[2:5] is the codon AGG
        result = mutate_pam(list("AAAGGAAA"), {3, 4}, homology_start=1)

        assert result is not None
        assert ''.join(result[0]) == "AAAGAAAA"

    def test_mutate_seed(self):
        """Test codon-by-codon seed changes."""
        result = mutate_seed(list("TTACAG"), {2, 5}, homology_start=0)

        assert result is not None
        arm, changes = result
        assert ''.join(arm) == "TTGCAA"
        assert changes == 2

    def test_mutate_seed_not_enough(self):
        """Test a seed of Met and Trp codons."""
        assert mutate_seed(list("ATGTGG"), set(range(6)), homology_start=0) is None

    def test_stop_codons_not_recoded(self):
        """Test that stop codons are left alone."""
        assert mutate_pam(list("TAGTAA"), {1, 2, 4, 5}, homology_start=0) is None


class TestDesignRepairTemplates:
    """Test repair-template design."""

    def test_pam_disrupted_by_target(self):
        """Test a codon change that already breaks the PAM."""
        sites = find_cas9_sites(CDS_PAM_IN_CODON, 18)
        designs = design_repair_templates(CDS_PAM_IN_CODON, sites, 18, 'A')

        assert len(designs) == 1
        design = designs[0]
        assert design.strategy == SilentMutationStrategy.PAM_DISRUPTED_BY_TARGET
        assert design.silent_mutation_count == 0
        assert design.aa_changes_count == 1
        assert design.homology_start == 12
        assert len(design.repair_template) == 75
        assert design.repair_template[39:42] == "GcT"
        assert design.total_base_changes == 1

    def test_pam_silent(self):
        """Test a silent PAM mutation."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        designs = design_repair_templates(CDS_PAM_CODON, sites, 13, 'E')

        assert len(designs) == 1
        design = designs[0]
        assert design.strategy == SilentMutationStrategy.PAM_SILENT
        assert design.silent_mutation_count == 1
        assert design.homology_start == 5
        # Target codon CAG -> GAA, PAM codon AGG -> AGA
        assert design.repair_template[31:34] == "gAa"
        assert design.repair_template[46:49] == "AGa"
        assert design.aa_changes_count == 1

    def test_seed_silent(self):
        """Test the seed fallback when no synonym touches the PAM."""
        sites = find_cas9_sites(CDS_PAM_IN_CODON, 12)
        designs = design_repair_templates(CDS_PAM_IN_CODON, sites, 12, 'F')

        assert len(designs) == 1
        design = designs[0]
        assert design.strategy == SilentMutationStrategy.SEED_SILENT
        assert design.silent_mutation_count == 2
        assert design.homology_start == 3
        # TTA -> TTG and CAG -> CAA in the seed
        assert design.repair_template[36:42] == "TTgCAa"

    def test_exactly_one_amino_acid_change(self):
        """Test that every design changes exactly the target residue."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        design = design_repair_templates(CDS_PAM_CODON, sites, 13, 'E')[0]

        original = translate(CDS_PAM_CODON)
        start = design.homology_start
        edited = (CDS_PAM_CODON[:start] + design.repair_template.upper()
                  + CDS_PAM_CODON[start + len(design.repair_template):])
        edited_protein = translate(edited)

        diffs = [i for i, (a, b) in enumerate(zip(original, edited_protein)) if a != b]
        assert diffs == [12]
        assert edited_protein[12] == 'E'

    def test_synonymous_target_rejected(self):
        """Test that a change with no amino-acid effect is not designed."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        assert design_repair_templates(CDS_PAM_CODON, sites, 13, 'Q') == []

    def test_unsupported_amino_acid(self):
        """Test that an unknown target residue gives no designs."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        assert design_repair_templates(CDS_PAM_CODON, sites, 13, 'B') == []

    def test_no_sites(self):
        """Test an empty site list."""
        assert design_repair_templates(CDS_PAM_CODON, [], 13, 'E') == []

    def test_deletion_template(self):
        """Test the PAM-deletion control."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        design = design_repair_templates(CDS_PAM_CODON, sites, 13, 'E')[0]

        assert len(design.deletion_repair_template) == 73
        assert design.deletion_dna_display[47:49] == "--"
        assert design.original_region == CDS_PAM_CODON[5:80]

    def test_oligos_and_score(self):
        """Test that design carries the site's oligos and score."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        design = design_repair_templates(CDS_PAM_CODON, sites, 13, 'E')[0]

        assert design.guide_with_pam == GUIDE + "AGG"
        assert design.cloning_oligo_a == "gatc" + GUIDE + "gttttagagctag"
        assert design.score == sites[0].score
        assert design.score is not None

    def test_alignments(self):
        """Test the display comparisons."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        design = design_repair_templates(CDS_PAM_CODON, sites, 13, 'E')[0]

        assert design.dna_alignment.original == design.original_region
        assert design.dna_alignment.match_string.count(' ') == 3
        assert design.aa_alignment.match_string.count(' ') == 1

    def test_reverse_pam_silent(self):
        """Test a silent change of the CC on a reverse-strand site."""
        sites = find_cas9_sites(CDS_REVERSE_PAM, 14)
        assert len(sites) == 1
        assert sites[0].strand == Strand.REVERSE

        designs = design_repair_templates(CDS_REVERSE_PAM, sites, 14, 'F')

        assert len(designs) == 1
        design = designs[0]
        assert design.strategy == SilentMutationStrategy.PAM_SILENT
        assert design.silent_mutation_count == 1
        assert design.aa_changes_count == 1
        assert design.homology_start == 6
        # PAM codon ACC -> ACT breaks the CC, target codon TAC -> TTT
        assert design.repair_template[24:27] == "ACt"
        assert design.repair_template[33:36] == "Ttt"
        assert design.deletion_dna_display[25:27] == "--"
        assert len(design.deletion_repair_template) == 73
        assert design.guide_with_pam == reverse_complement(CDS_REVERSE_PAM[31:54])

    def test_reverse_seed_silent(self):
        """Test the seed fallback on a reverse-strand site."""
        sites = find_cas9_sites(CDS_REVERSE_SEED, 17)
        assert len(sites) == 1
        assert sites[0].strand == Strand.REVERSE

        designs = design_repair_templates(CDS_REVERSE_SEED, sites, 17, 'V')

        assert len(designs) == 1
        design = designs[0]
        assert design.strategy == SilentMutationStrategy.SEED_SILENT
        assert design.silent_mutation_count == 2
        assert design.aa_changes_count == 1
        assert design.homology_start == 10
        # GAT -> GAC and TAC -> TAT in the seed, target codon ATT -> GTT
        assert design.repair_template[23:29] == "GAcTAt"
        assert design.repair_template[38:41] == "gTT"
        assert design.deletion_dna_display[20:22] == "--"

    def test_ranked_by_score_unscored_last(self):
        """Test that a design without a score ranks as 0."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        unscored = Cas9Site(position=31, sequence=GUIDE + "AGG", strand=Strand.FORWARD)
        scored = sites[0].score
        assert scored is not None and scored > 0

        designs = design_repair_templates(CDS_PAM_CODON, [unscored] + sites, 13, 'E')

        assert [d.score for d in designs] == [scored, None]
        assert [d.rank_score for d in designs] == [scored, 0]

    def test_max_designs(self):
        """Test that the cap keeps the best-ranked design."""
        sites = find_cas9_sites(CDS_PAM_CODON, 13)
        unscored = Cas9Site(position=31, sequence=GUIDE + "AGG", strand=Strand.FORWARD)
        config = DesignConfig(max_designs=1)

        designs = design_repair_templates(CDS_PAM_CODON, [unscored] + sites, 13, 'E', config)

        assert len(designs) == 1
        assert designs[0].score == sites[0].score


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
